"""Reading and labelling Kubernetes nodes through the cluster's REST API."""

from __future__ import annotations

import base64
import copy
import json
import os
import ssl
import tempfile
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import yaml

# Where a pod finds its service account credentials.
SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"

# Label that holds the host NQN UUIDs of a node.
NVME_UUID_LABEL = "hostnqn-uuid"

_NOT_IN_CLUSTER = (
    "unable to load in-cluster configuration, KUBERNETES_SERVICE_HOST and "
    "KUBERNETES_SERVICE_PORT must be defined"
)
_NO_CLIENT = "k8sclientset is nil"


class K8sError(Exception):
    """A failure to configure or talk to the Kubernetes API."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class NodeAPI(Protocol):
    """Node operations of the Kubernetes API; failures raise K8sError."""

    def get_node(self, name: str) -> dict[str, Any]: ...

    def update_node(self, node: dict[str, Any]) -> dict[str, Any]: ...

    def list_nodes(self) -> list[dict[str, Any]]: ...


@dataclass
class _ClusterConfig:
    server: str
    token: str = ""
    token_file: str = ""
    ca_file: str = ""
    ca_data: str = ""
    insecure: bool = False
    client_cert_file: str = ""
    client_cert_data: bytes = b""
    client_key_file: str = ""
    client_key_data: bytes = b""

    def bearer_token(self) -> str:
        if self.token_file:
            try:
                with open(self.token_file, encoding="utf-8") as handle:
                    return handle.read().strip()
            except OSError as exc:
                raise K8sError(f"cannot read token file {self.token_file}: {exc}") from exc
        return self.token


def _resolve(path: str, base_dir: str) -> str:
    if not path or os.path.isabs(path):
        return path
    return os.path.join(base_dir, path)


def _decode(value: Any, what: str) -> bytes:
    try:
        return base64.b64decode(str(value), validate=True)
    except ValueError as exc:
        raise K8sError(f"invalid base64 in {what}: {exc}") from exc


def _named(entries: Any, inner: str) -> dict[str, dict[str, Any]]:
    result: dict[str, dict[str, Any]] = {}
    for entry in entries or []:
        if isinstance(entry, Mapping) and "name" in entry:
            result[str(entry["name"])] = dict(entry.get(inner) or {})
    return result


def _load_kubeconfig(path: str) -> _ClusterConfig:
    try:
        with open(path, encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except OSError as exc:
        raise K8sError(f"cannot read kubeconfig {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise K8sError(f"cannot parse kubeconfig {path}: {exc}") from exc
    if not isinstance(document, Mapping):
        raise K8sError("invalid configuration: no configuration has been provided")

    current = document.get("current-context")
    if not current:
        raise K8sError("invalid configuration: no current context is set")
    contexts = _named(document.get("contexts"), "context")
    if current not in contexts:
        raise K8sError(f'context "{current}" not found in kubeconfig')
    context = contexts[current]

    clusters = _named(document.get("clusters"), "cluster")
    cluster_name = str(context.get("cluster", ""))
    if cluster_name not in clusters:
        raise K8sError(f'cluster "{cluster_name}" not found in kubeconfig')
    cluster = clusters[cluster_name]
    server = str(cluster.get("server") or "")
    if not server:
        raise K8sError("invalid configuration: no server found for cluster")

    user = _named(document.get("users"), "user").get(str(context.get("user", "")), {})
    base_dir = os.path.dirname(os.path.abspath(path))

    ca_data = ""
    if cluster.get("certificate-authority-data"):
        ca_data = _decode(cluster["certificate-authority-data"], "certificate-authority-data").decode(
            "ascii", errors="replace"
        )
    return _ClusterConfig(
        server=server.rstrip("/"),
        token=str(user.get("token") or ""),
        token_file=_resolve(str(user.get("tokenFile") or ""), base_dir),
        ca_file=_resolve(str(cluster.get("certificate-authority") or ""), base_dir),
        ca_data=ca_data,
        insecure=bool(cluster.get("insecure-skip-tls-verify", False)),
        client_cert_file=_resolve(str(user.get("client-certificate") or ""), base_dir),
        client_cert_data=(
            _decode(user["client-certificate-data"], "client-certificate-data")
            if user.get("client-certificate-data")
            else b""
        ),
        client_key_file=_resolve(str(user.get("client-key") or ""), base_dir),
        client_key_data=(
            _decode(user["client-key-data"], "client-key-data")
            if user.get("client-key-data")
            else b""
        ),
    )


def _in_cluster_config(environ: Mapping[str, str], service_account_dir: str) -> _ClusterConfig:
    host = environ.get("KUBERNETES_SERVICE_HOST", "")
    port = environ.get("KUBERNETES_SERVICE_PORT", "")
    if not host or not port:
        raise K8sError(_NOT_IN_CLUSTER)
    token_file = os.path.join(service_account_dir, "token")
    try:
        with open(token_file, encoding="utf-8"):
            pass
    except OSError as exc:
        raise K8sError(f"cannot read service account token: {exc}") from exc
    ca_file = os.path.join(service_account_dir, "ca.crt")
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return _ClusterConfig(
        server=f"https://{host}:{port}",
        token_file=token_file,
        ca_file=ca_file if os.path.isfile(ca_file) else "",
    )


def _load_client_chain(context: ssl.SSLContext, config: _ClusterConfig) -> None:
    if not (config.client_cert_file or config.client_cert_data):
        return
    temporary: list[str] = []
    try:
        cert_file, key_file = config.client_cert_file, config.client_key_file
        for data, name in ((config.client_cert_data, "cert"), (config.client_key_data, "key")):
            if not data:
                continue
            fd, path = tempfile.mkstemp(suffix=f".{name}.pem")
            temporary.append(path)
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            if name == "cert":
                cert_file = path
            else:
                key_file = path
        context.load_cert_chain(cert_file, key_file or None)
    except (OSError, ssl.SSLError) as exc:
        raise K8sError(f"cannot load client certificate: {exc}") from exc
    finally:
        for path in temporary:
            os.remove(path)


def _ssl_context(config: _ClusterConfig) -> Optional[ssl.SSLContext]:
    if not config.server.lower().startswith("https://"):
        return None
    try:
        context = ssl.create_default_context(
            cafile=config.ca_file or None, cadata=config.ca_data or None
        )
    except (OSError, ssl.SSLError) as exc:
        raise K8sError(f"cannot load certificate authority: {exc}") from exc
    if config.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    _load_client_chain(context, config)
    return context


def _error_message(exc: urllib.error.HTTPError) -> str:
    try:
        body = json.loads(exc.read() or b"{}")
    except ValueError:
        body = {}
    if isinstance(body, Mapping) and body.get("message"):
        return str(body["message"])
    return f"{exc.code} {exc.reason}"


class _RestNodeAPI:
    """Node operations over the cluster's REST API."""

    def __init__(self, config: _ClusterConfig, timeout: float) -> None:
        self._config = config
        self._timeout = timeout
        self._ssl = _ssl_context(config)

    def _request(self, method: str, path: str, body: Any = None) -> Any:
        headers = {"Accept": "application/json"}
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        token = self._config.bearer_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        request = urllib.request.Request(
            self._config.server + path, data=data, headers=headers, method=method
        )
        try:
            with urllib.request.urlopen(request, timeout=self._timeout, context=self._ssl) as resp:
                payload = resp.read()
        except urllib.error.HTTPError as exc:
            raise K8sError(_error_message(exc), exc.code) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise K8sError(str(exc)) from exc
        try:
            return json.loads(payload)
        except ValueError as exc:
            raise K8sError(f"invalid response from {path}: {exc}") from exc

    @staticmethod
    def _node_path(name: str) -> str:
        return "/api/v1/nodes/" + urllib.parse.quote(name, safe="")

    def get_node(self, name: str) -> dict[str, Any]:
        return self._request("GET", self._node_path(name))

    def update_node(self, node: dict[str, Any]) -> dict[str, Any]:
        name = str((node.get("metadata") or {}).get("name", ""))
        return self._request("PUT", self._node_path(name), node)

    def list_nodes(self) -> list[dict[str, Any]]:
        return list(self._request("GET", "/api/v1/nodes").get("items") or [])


class K8sNodeLabels:
    """Reads node labels and records NVMe host UUIDs as node labels."""

    def __init__(
        self,
        api: Optional[NodeAPI] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        service_account_dir: str = SERVICE_ACCOUNT_DIR,
        timeout: float = 30.0,
    ) -> None:
        self.api = api
        self._environ = environ
        self._service_account_dir = service_account_dir
        self._timeout = timeout

    def connect(self, kubeconfig: str = "") -> None:
        """Create the API client unless there is one: from the kubeconfig
        file if given, else from the pod's in-cluster service account."""
        if self.api is not None:
            return
        if kubeconfig:
            config = _load_kubeconfig(kubeconfig)
        else:
            environ = os.environ if self._environ is None else self._environ
            config = _in_cluster_config(environ, self._service_account_dir)
        self.api = _RestNodeAPI(config, self._timeout)

    def get_node_labels(self, node_name: str) -> Optional[dict[str, str]]:
        """Labels of the node; None when there is no API client."""
        if self.api is None:
            return None
        node = self.api.get_node(node_name)
        return dict((node.get("metadata") or {}).get("labels") or {})

    def add_nvme_labels(self, node_name: str, label_key: str, label_values: list[str]) -> None:
        """Set the label to the comma-joined UUIDs of host NQNs of the form
        'nqn.yyyy-mm.nvmexpress:uuid:<uuid>'; other values are skipped."""
        if self.api is None:
            raise K8sError(_NO_CLIENT)
        try:
            node = copy.deepcopy(self.api.get_node(node_name))
        except K8sError as exc:
            raise K8sError(f"failed to get node {node_name}: {exc}", exc.status_code) from exc
        metadata = node.setdefault("metadata", {})
        labels = metadata.get("labels") or {}
        metadata["labels"] = labels

        uuids = [parts[2] for parts in (nqn.split(":") for nqn in label_values) if len(parts) == 3]
        labels[label_key] = ",".join(uuids)
        try:
            self.api.update_node(node)
        except K8sError as exc:
            raise K8sError(
                f"failed to update node {node_name} labels: {exc}", exc.status_code
            ) from exc

    def get_nvme_uuids(self) -> dict[str, str]:
        """Host NQN UUID label of every node that has one, by node name."""
        if self.api is None:
            raise K8sError(_NO_CLIENT)
        try:
            nodes = self.api.list_nodes()
        except K8sError as exc:
            raise K8sError(f"failed to get node list: {exc}", exc.status_code) from exc
        result: dict[str, str] = {}
        for node in nodes:
            metadata = node.get("metadata") or {}
            labels = metadata.get("labels") or {}
            if NVME_UUID_LABEL in labels:
                result[str(metadata.get("name", ""))] = labels[NVME_UUID_LABEL]
        return result