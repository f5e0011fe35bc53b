"""Test configuration and fixtures for vsphere-clone."""

import pytest
import sys
from pathlib import Path
from types import SimpleNamespace

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vsphere_clone.exceptions import NotFoundError  # noqa: E402
from vsphere_clone.progress import RecordingProgressSink  # noqa: E402


def make_vm(name="tmpl", template=False, guest_id="otherLinux64Guest"):
    """Build a stand-in for a pyVmomi VirtualMachine."""
    return SimpleNamespace(
        name=name,
        config=SimpleNamespace(template=template, guestId=guest_id),
    )


class FakeInventory:
    """In-memory inventory recording every call."""

    def __init__(self, hosts=None, pools=None, datastores=None, specs=None):
        self.hosts = hosts or {}
        self.pools = pools or {}
        self.datastores = datastores or {}
        self.specs = specs or {}
        self.delta_disk_calls = []
        self.calls = []

    def _lookup(self, table, kind, name):
        self.calls.append((kind, name))
        if name not in table:
            raise NotFoundError(kind, name)
        return table[name]

    def find_host(self, name):
        return self._lookup(self.hosts, "host", name)

    def find_resource_pool(self, name):
        return self._lookup(self.pools, "resource pool", name)

    def find_datastore(self, name):
        return self._lookup(self.datastores, "datastore", name)

    def find_customization_spec(self, name):
        return self._lookup(self.specs, "customization spec", name)

    def create_delta_disk(self, vm):
        self.calls.append(("delta disk", vm.name))
        self.delta_disk_calls.append(vm)


class FakeNetworkPlanner:
    """Returns canned NIC changes."""

    def __init__(self, additions=(), changes=()):
        self.additions = list(additions)
        self.changes = list(changes)
        self.calls = []

    def compute_device_changes(self, template, options):
        self.calls.append((template, options.network_name))
        return self.additions, self.changes


@pytest.fixture
def root_pool():
    return SimpleNamespace(name="Resources")


@pytest.fixture
def esx_host(root_pool):
    """Host whose compute resource owns ``root_pool``."""
    return SimpleNamespace(
        name="esx-01", parent=SimpleNamespace(resourcePool=root_pool)
    )


@pytest.fixture
def inventory(esx_host):
    return FakeInventory(
        hosts={"esx-01": esx_host},
        pools={"pool-A": SimpleNamespace(name="pool-A")},
        datastores={"ds-1": SimpleNamespace(name="ds-1")},
        specs={"stored-linux": SimpleNamespace(name="stored-linux")},
    )


@pytest.fixture
def progress():
    return RecordingProgressSink()


@pytest.fixture
def linux_template():
    return make_vm("centos-tmpl", template=True, guest_id="otherLinux64Guest")


@pytest.fixture
def linux_vm():
    return make_vm("centos-golden", template=False, guest_id="centos7_64Guest")


@pytest.fixture
def windows_template():
    return make_vm("win2016-tmpl", template=True, guest_id="windows9Server64Guest")
