import copy
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from pstorecsi.k8sutils import K8sError, K8sNodeLabels


def node_with_labels():
    return {
        "metadata": {
            "name": "node1",
            "labels": {"max-powerstore-volumes-per-node": "2", "hostnqn-uuid": "uuid1"},
        }
    }


def node_without_labels():
    return {"metadata": {"name": "node1"}}


class FakeNodeAPI:
    def __init__(self, *nodes):
        self.nodes = {n["metadata"]["name"]: copy.deepcopy(n) for n in nodes}

    def get_node(self, name):
        if name not in self.nodes:
            raise K8sError(f'nodes "{name}" not found', 404)
        return copy.deepcopy(self.nodes[name])

    def update_node(self, node):
        name = node["metadata"]["name"]
        if name not in self.nodes:
            raise K8sError(f'nodes "{name}" not found', 404)
        self.nodes[name] = copy.deepcopy(node)
        return copy.deepcopy(node)

    def list_nodes(self):
        return [copy.deepcopy(n) for n in self.nodes.values()]


class FailingNodeAPI(FakeNodeAPI):
    def update_node(self, node):
        raise K8sError("conflict", 409)

    def list_nodes(self):
        raise K8sError("forbidden", 403)


NQN = "nqn.2025-mm.nvmexpress:uuid:xxxx-yyyy-zzzz"


def test_get_node_labels():
    k8s = K8sNodeLabels(FakeNodeAPI(node_with_labels()))
    assert k8s.get_node_labels("node1") == {
        "max-powerstore-volumes-per-node": "2",
        "hostnqn-uuid": "uuid1",
    }


def test_get_nvme_uuids():
    k8s = K8sNodeLabels(FakeNodeAPI(node_with_labels()))
    assert k8s.get_nvme_uuids() == {"node1": "uuid1"}


def test_get_nvme_uuids_skips_unlabelled_nodes():
    other = {"metadata": {"name": "node2"}}
    k8s = K8sNodeLabels(FakeNodeAPI(node_with_labels(), other))
    assert k8s.get_nvme_uuids() == {"node1": "uuid1"}


def test_add_nvme_labels():
    api = FakeNodeAPI(node_without_labels())
    k8s = K8sNodeLabels(api)
    k8s.add_nvme_labels("node1", "hostnqn", [NQN])
    assert api.nodes["node1"]["metadata"]["labels"] == {"hostnqn": "xxxx-yyyy-zzzz"}


def test_add_nvme_labels_joins_and_skips_malformed():
    api = FakeNodeAPI(node_with_labels())
    k8s = K8sNodeLabels(api)
    k8s.add_nvme_labels(
        "node1",
        "hostnqn",
        ["nqn.a:uuid:first", "not-an-nqn", "nqn.b:uuid:second", "a:b:c:d"],
    )
    labels = api.nodes["node1"]["metadata"]["labels"]
    assert labels["hostnqn"] == "first,second"
    assert labels["hostnqn-uuid"] == "uuid1"


def test_get_node_labels_error():
    k8s = K8sNodeLabels(FakeNodeAPI())
    with pytest.raises(K8sError) as info:
        k8s.get_node_labels("node1")
    assert info.value.status_code == 404


def test_get_node_labels_without_client_is_none():
    assert K8sNodeLabels().get_node_labels("node1") is None


def test_get_nvme_uuids_without_client():
    with pytest.raises(K8sError, match="k8sclientset is nil"):
        K8sNodeLabels().get_nvme_uuids()


def test_add_nvme_labels_get_error():
    k8s = K8sNodeLabels(FakeNodeAPI())
    with pytest.raises(K8sError, match="failed to get node"):
        k8s.add_nvme_labels("node1", "hostnqn", [NQN])


def test_add_nvme_labels_without_client():
    with pytest.raises(K8sError, match="k8sclientset is nil"):
        K8sNodeLabels().add_nvme_labels("node1", "hostnqn", [NQN])


def test_add_nvme_labels_update_error():
    k8s = K8sNodeLabels(FailingNodeAPI(node_without_labels()))
    with pytest.raises(K8sError, match="failed to update node node1 labels: conflict"):
        k8s.add_nvme_labels("node1", "hostnqn", [NQN])


def test_get_nvme_uuids_list_error():
    k8s = K8sNodeLabels(FailingNodeAPI(node_with_labels()))
    with pytest.raises(K8sError, match="failed to get node list: forbidden"):
        k8s.get_nvme_uuids()


def test_connect_keeps_existing_client():
    api = FakeNodeAPI(node_with_labels())
    k8s = K8sNodeLabels(api)
    k8s.connect("/nonexistent/kubeconfig")
    assert k8s.api is api
    assert k8s.get_nvme_uuids() == {"node1": "uuid1"}


def test_connect_missing_kubeconfig(tmp_path):
    k8s = K8sNodeLabels()
    with pytest.raises(K8sError, match="cannot read kubeconfig"):
        k8s.connect(str(tmp_path / "missing"))


def test_connect_kubeconfig_without_context(tmp_path):
    path = tmp_path / "config"
    path.write_text("apiVersion: v1\nclusters: []\n")
    with pytest.raises(K8sError, match="no current context"):
        K8sNodeLabels().connect(str(path))


def test_connect_in_cluster_without_env(tmp_path):
    k8s = K8sNodeLabels(environ={}, service_account_dir=str(tmp_path))
    with pytest.raises(K8sError, match="unable to load in-cluster configuration"):
        k8s.connect()


def test_connect_in_cluster_without_token(tmp_path):
    env = {"KUBERNETES_SERVICE_HOST": "10.0.0.1", "KUBERNETES_SERVICE_PORT": "443"}
    k8s = K8sNodeLabels(environ=env, service_account_dir=str(tmp_path))
    with pytest.raises(K8sError, match="service account token"):
        k8s.connect()


@pytest.fixture
def api_server():
    state = {"nodes": {"node1": node_with_labels()}, "auth": []}

    class Handler(BaseHTTPRequestHandler):
        def log_message(self, *args):
            pass

        def _send(self, code, body):
            payload = json.dumps(body).encode()
            self.send_response(code)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def _name(self):
            prefix = "/api/v1/nodes/"
            return self.path[len(prefix):] if self.path.startswith(prefix) else None

        def do_GET(self):
            state["auth"].append(self.headers.get("Authorization"))
            if self.path == "/api/v1/nodes":
                self._send(200, {"items": list(state["nodes"].values())})
                return
            name = self._name()
            if name in state["nodes"]:
                self._send(200, state["nodes"][name])
            else:
                self._send(404, {"kind": "Status", "message": f'nodes "{name}" not found'})

        def do_PUT(self):
            state["auth"].append(self.headers.get("Authorization"))
            length = int(self.headers.get("Content-Length", "0"))
            body = json.loads(self.rfile.read(length))
            name = self._name()
            state["nodes"][name] = body
            self._send(200, body)

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}", state
    finally:
        server.shutdown()
        server.server_close()


def write_kubeconfig(path, server, user_block):
    path.write_text(
        "apiVersion: v1\n"
        "kind: Config\n"
        "current-context: test\n"
        "clusters:\n"
        "- name: local\n"
        "  cluster:\n"
        f"    server: {server}\n"
        "contexts:\n"
        "- name: test\n"
        "  context:\n"
        "    cluster: local\n"
        "    user: tester\n"
        "users:\n"
        "- name: tester\n"
        "  user:\n"
        f"{user_block}"
    )


def test_rest_client_through_kubeconfig(tmp_path, api_server):
    url, state = api_server
    config = tmp_path / "config"
    write_kubeconfig(config, url, "    token: token\n")
    k8s = K8sNodeLabels()
    k8s.connect(str(config))

    assert k8s.get_node_labels("node1") == {
        "max-powerstore-volumes-per-node": "2",
        "hostnqn-uuid": "uuid1",
    }
    k8s.add_nvme_labels("node1", "hostnqn", [NQN])
    assert state["nodes"]["node1"]["metadata"]["labels"]["hostnqn"] == "xxxx-yyyy-zzzz"
    assert k8s.get_nvme_uuids() == {"node1": "uuid1"}
    assert set(state["auth"]) == {"Bearer token"}


def test_rest_client_not_found(tmp_path, api_server):
    url, _ = api_server
    config = tmp_path / "config"
    write_kubeconfig(config, url, "    token: token\n")
    k8s = K8sNodeLabels()
    k8s.connect(str(config))
    with pytest.raises(K8sError) as info:
        k8s.get_node_labels("ghost")
    assert info.value.status_code == 404
    assert str(info.value) == 'nodes "ghost" not found'


def test_rest_client_relative_token_file(tmp_path, api_server):
    url, state = api_server
    (tmp_path / "tok").write_text("token\n")
    config = tmp_path / "config"
    write_kubeconfig(config, url, "    tokenFile: tok\n")
    k8s = K8sNodeLabels()
    k8s.connect(str(config))
    assert k8s.get_nvme_uuids() == {"node1": "uuid1"}
    assert state["auth"] == ["Bearer token"]