# pstorecsi

Building blocks for a PowerStore container storage driver: CSI value types
and status errors, volume request validation, NFS host-access entries,
SCSI/NVMe target discovery through an array client, Kubernetes node
labelling, file-system helpers and request-scoped logging.

## What is inside

| Module | Purpose |
| --- | --- |
| `pstorecsi.version` | Build values (`SEMVER`, `COMMIT_SHA7`, `COMMIT_SHA32`, `COMMIT_TIME`) and `manifest()` |
| `pstorecsi.envvars` | Names of the environment variables the driver reads |
| `pstorecsi.logger` | `CustomLogger` and per-request log fields (`set_log_fields`, `get_log_fields`) |
| `pstorecsi.fs` | `Fs`, a thin layer over file, process, socket and mount-table operations; `MountInfo` |
| `pstorecsi.csi` | `Code`, `CSIError`, `AccessMode`, `MountVolume`, `BlockVolume`, `VolumeCapability`, `Topology`, `Volume`, `Snapshot` |
| `pstorecsi.powerstore` | The `Client` protocol, its records (`IPPoolAddress`, `FcPort`, `NFSExport`, `Cluster`, `HostVolumeDetach`) and `APIError` |
| `pstorecsi.netutils` | IP and CIDR helpers for NFS external access |
| `pstorecsi.volumes` | Volume name/size validation, CSI volume/snapshot records, detaching volumes from hosts |
| `pstorecsi.common` | `TransportType`, target discovery, topology and environment helpers |
| `pstorecsi.k8sutils` | `K8sNodeLabels` for reading and writing node labels; `K8sError` |

## Manifest

```python
from pstorecsi.version import manifest

manifest()  # {"url": ..., "semver": "unknown", "commit": "", "formed": "Mon, 01 Jan 0001 00:00:00 UTC"}
```

The module-level values are meant to be set by the build; `formed` is the
commit time in RFC 1123 form.

## Logging with request fields

```python
from pstorecsi.logger import CustomLogger, REQUEST_ID_KEY, set_log_fields, get_log_fields

ctx = set_log_fields({REQUEST_ID_KEY: "42"}, {"volume": "vol-1"})
get_log_fields(ctx)   # {"volume": "vol-1", "RequestID": "42"}
CustomLogger().info(ctx, "published %s", "vol-1")
```

Records go to the `pstorecsi` logger with the fields in `extra["fields"]`.

## File system helpers

`Fs` wraps `os`, `shutil`, `subprocess` and `socket`: `open_file`, `stat`,
`create`, `read_file`, `write_file`, `mkdir`, `mkdir_all`, `chmod`, `remove`,
`remove_all`, `write_string`, `exec_command`, `exec_command_output`,
`net_dial` and `mk_file_idempotent` (returns `True` when it created the file,
raises `IsADirectoryError` when the path is a directory).
`parse_proc_mounts` turns mountinfo text into `MountInfo` entries.

## Networking helpers

```python
from pstorecsi.netutils import parse_cidr, get_ip_with_mask_from_string

parse_cidr("10.232.58.2/16")                   # "10.232.0.0/255.255.0.0"
parse_cidr("10.232.58.2")                      # "10.232.58.2/255.255.255.255"
get_ip_with_mask_from_string("10.1.1.2/24")    # "10.1.1.2/255.255.255.0"
```

Invalid addresses and masks raise `ValueError`. `get_ip_list_from_string`
finds every IPv4 address in a string, `external_access_already_added` checks
an `NFSExport`'s host lists, and `reachable_endpoint("host:port")` tries a TCP
connection with a two-second timeout.

## Volume validation

```python
from pstorecsi.volumes import validate_volume_name, validate_volume_size

validate_volume_name("pvc-data")          # returns the name
validate_volume_size(8192, 1 << 30)       # returns (8192, 1073741824)
validate_volume_size(-1, -1)              # raises CSIError (OUT_OF_RANGE)
```

Names must be non-empty and at most 128 characters; sizes must be
non-negative, ordered, and no larger than 256 TiB. `detach_volume_from_host`
treats an already detached volume as success and raises `CSIError` with
`NOT_FOUND` for a missing host or `UNKNOWN` for other failures.

## Target discovery and topology

With any object that satisfies `pstorecsi.powerstore.Client`:

- `iscsi_targets_info`, `nvme_tcp_targets_info`, `fc_targets_info`,
  `nvme_fc_targets_info` return target records for an appliance (an empty
  appliance ID selects all, except for plain FC).
- `is_k8s_metadata_supported` is true for array software 3.0 and later.
- `has_required_topology` and `nfs_topology` work with `Topology` segments
  keyed `<driver name>/<array ip>-<protocol>`.

Environment helpers: `get_csi_endpoint`, `rm_sock_file`, `polling_frequency`
(default 60) and `api_port` (default `":8083"`).

## Kubernetes node labels

```python
from pstorecsi.k8sutils import K8sNodeLabels

labels = K8sNodeLabels()
labels.connect()                      # in-cluster service account, or connect("/path/to/kubeconfig")
labels.get_node_labels("node1")
labels.add_nvme_labels("node1", "hostnqn-uuid", ["nqn.2014-08.org.nvmexpress:uuid:1234"])
labels.get_nvme_uuids()               # {"node1": "1234"}
```

A node API object can also be passed to `K8sNodeLabels(api=...)`. Failures
raise `K8sError`.

## What this package does not do

- It has no command-line program and runs no driver or gRPC server.
- It does not load the arrays configuration file, keep a set of arrays, or
  decode volume handles.
- It does not ship a storage API client: `Client` is a protocol you implement.
- It does not produce version strings from a version-control checkout.