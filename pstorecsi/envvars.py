"""Names of the environment variables the driver reads."""

# Name of the CSI driver (provisioner).
ENV_DRIVER_NAME = "X_CSI_DRIVER_NAME"

# File whose contents are appended to the node ID.
ENV_NODE_ID_FILE_PATH = "X_CSI_POWERSTORE_NODE_ID_PATH"

# Name of the current kubernetes node.
ENV_KUBE_NODE_NAME = "X_CSI_POWERSTORE_KUBE_NODE_NAME"

# Kubernetes configuration path used by the driver.
ENV_KUBE_CONFIG_PATH = "KUBECONFIG"

# Prefix used when registering the node on the array.
ENV_NODE_NAME_PREFIX = "X_CSI_POWERSTORE_NODE_NAME_PREFIX"

# Maximum number of volumes the controller may publish to one node.
ENV_MAX_VOLUMES_PER_NODE = "X_CSI_POWERSTORE_MAX_VOLUMES_PER_NODE"

# Chroot in which iSCSI commands are executed.
ENV_NODE_CHROOT_PATH = "X_CSI_POWERSTORE_NODE_CHROOT_PATH"

# Folder for the driver's temporary files.
ENV_TMP_DIR = "X_CSI_POWERSTORE_TMP_DIR"

# File listing the WWPNs to use for FC connections on this node,
# e.g. "21:00:00:29:ff:48:9f:6e,21:00:00:29:ff:48:9f:6e". If the file is
# missing, empty or malformed, every available FC port is used.
ENV_FC_PORTS_FILTER_FILE_PATH = "X_CSI_FC_PORTS_FILTER_FILE_PATH"

# Number of concurrent requests to one storage API.
ENV_THROTTLING_RATE_LIMIT = "X_CSI_POWERSTORE_THROTTLING_RATE_LIMIT"

# Whether CHAP credentials are set in the iSCSI node database at boot.
ENV_ENABLE_CHAP = "X_CSI_POWERSTORE_ENABLE_CHAP"

# Address of an additional router added to NFS exports (NFS behind NAT).
ENV_EXTERNAL_ACCESS = "X_CSI_POWERSTORE_EXTERNAL_ACCESS"

# Path of the arrays configuration file.
ENV_ARRAY_CONFIG_FILE_PATH = "X_CSI_POWERSTORE_CONFIG_PATH"

# Path of the driver parameters configuration file.
ENV_CONFIG_PARAMS_FILE_PATH = "X_CSI_POWERSTORE_CONFIG_PARAMS_PATH"

# Enables tracing in the driver.
ENV_DEBUG_ENABLE_TRACING = "ENABLE_TRACING"

# Lets sidecars read required information from the volume context.
ENV_REPLICATION_CONTEXT_PREFIX = "X_CSI_REPLICATION_CONTEXT_PREFIX"

# Prefix used to find out whether replication is enabled.
ENV_REPLICATION_PREFIX = "X_CSI_REPLICATION_PREFIX"

# Whether requests and responses of every CSI call are printed.
ENV_GOCSI_DEBUG = "X_CSI_DEBUG"

# Whether the health monitor is enabled.
ENV_IS_HEALTH_MONITOR_ENABLED = "X_CSI_HEALTH_MONITOR_ENABLED"

# ACLs set on the NFS mount directory.
ENV_NFS_ACLS = "X_CSI_NFS_ACLS"

# Endpoint of the metadata retriever sidecar.
ENV_METADATA_RETRIEVER_ENDPOINT = "CSI_RETRIEVER_ENDPOINT"

# Whether the minimal filesystem size is rounded up automatically.
ENV_ALLOW_AUTO_ROUND_OFF_FILESYSTEM_SIZE = "CSI_AUTO_ROUND_OFF_FILESYSTEM_SIZE"

# Whether podmon is enabled.
ENV_PODMON_ENABLED = "X_CSI_PODMON_ENABLED"

# Port on which the podmon health API is exposed.
ENV_PODMON_API_PORT = "X_CSI_PODMON_API_PORT"

# Polling frequency of the array connectivity check.
ENV_PODMON_ARRAY_CONNECTIVITY_POLL_RATE = "X_CSI_PODMON_ARRAY_CONNECTIVITY_POLL_RATE"

# Folder in which NFS volumes are mounted.
ENV_NFS_EXPORT_DIRECTORY = "X_CSI_NFS_EXPORT_DIRECTORY"