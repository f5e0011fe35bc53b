"""
Inventory access for vSphere.

This module defines the collaborator interfaces the clone builder calls into
and their pyVmomi implementations: name lookups, delta-disk preparation for
linked clones, and NIC device changes.
"""

from typing import Any, List, Optional, Protocol, Sequence, Tuple

from pyVim.task import WaitForTask
from pyVmomi import vim, vmodl

from .exceptions import NotFoundError, TaskError
from .logging import logger
from .models import BootstrapOptions


class InventoryResolver(Protocol):
    """Resolves names to platform handles."""

    def find_host(self, name: str) -> Any: ...

    def find_resource_pool(self, name: str) -> Any: ...

    def find_datastore(self, name: str) -> Any: ...

    def find_customization_spec(self, name: str) -> Any: ...

    def create_delta_disk(self, vm: Any) -> None: ...


class NetworkChangePlanner(Protocol):
    """Computes NIC device specs for the requested networks."""

    def compute_device_changes(
        self, template: Any, options: BootstrapOptions
    ) -> Tuple[Sequence[Any], Sequence[Any]]: ...


def source_is_template(vm: Any) -> bool:
    """True when the clone source is marked as a vSphere template."""
    return bool(vm.config.template)


def source_guest_id(vm: Any) -> str:
    """Guest OS identifier of the clone source, e.g. ``windows9Server64Guest``."""
    return vm.config.guestId or ""


def root_resource_pool(host: Any) -> Any:
    """The implicit root pool of the compute resource owning ``host``."""
    return host.parent.resourcePool


class VSphereInventory:
    """Inventory lookups against a connected vCenter service instance."""

    def __init__(self, service_instance: Any, datacenter: Optional[str] = None) -> None:
        self.service_instance = service_instance
        self.content = service_instance.RetrieveContent()
        self.datacenter_name = datacenter
        self._datacenter: Any = None

    def _search_root(self) -> Any:
        if not self.datacenter_name:
            return self.content.rootFolder
        if self._datacenter is None:
            self._datacenter = self._find_by_name(
                vim.Datacenter, self.datacenter_name, "datacenter", self.content.rootFolder
            )
        return self._datacenter

    def _find_by_name(
        self, vimtype: Any, name: str, kind: str, root: Any = None
    ) -> Any:
        view = self.content.viewManager.CreateContainerView(
            root or self._search_root(), [vimtype], True
        )
        try:
            for obj in view.view:
                if obj.name == name:
                    logger.debug(f"Resolved {kind} '{name}'", kind=kind, object_name=name)
                    return obj
        finally:
            view.Destroy()

        raise NotFoundError(kind, name)

    def find_vm(self, name: str) -> Any:
        return self._find_by_name(vim.VirtualMachine, name, "vm")

    def find_host(self, name: str) -> Any:
        return self._find_by_name(vim.HostSystem, name, "host")

    def find_resource_pool(self, name: str) -> Any:
        return self._find_by_name(vim.ResourcePool, name, "resource pool")

    def find_datastore(self, name: str) -> Any:
        return self._find_by_name(vim.Datastore, name, "datastore")

    def find_network(self, name: str) -> Any:
        return self._find_by_name(vim.Network, name, "network")

    def find_folder(self, name: str) -> Any:
        return self._find_by_name(vim.Folder, name, "folder")

    def find_customization_spec(self, name: str) -> Any:
        """Fetch a stored customization spec by name."""
        manager = self.content.customizationSpecManager
        if not manager.DoesCustomizationSpecExist(name=name):
            raise NotFoundError("customization spec", name)
        return manager.GetCustomizationSpec(name=name).spec

    def create_delta_disk(self, vm: Any) -> None:
        """
        Prepare ``vm`` for linked clones.

        Every disk without a parent backing is swapped for a child disk that
        uses the original as its parent. Disks that already have a parent are
        left alone, so calling this again on a prepared VM changes nothing.
        """
        base_disks = [
            device
            for device in vm.config.hardware.device
            if isinstance(device, vim.vm.device.VirtualDisk)
            and device.backing.parent is None
        ]

        for disk in base_disks:
            logger.info(
                f"Creating delta disk for {vm.name} ({disk.deviceInfo.label})",
                vm_name=vm.name,
                disk_key=disk.key,
            )
            spec = vim.vm.ConfigSpec(
                deviceChange=[
                    vim.vm.device.VirtualDeviceSpec(
                        operation=vim.vm.device.VirtualDeviceSpec.Operation.remove,
                        device=disk,
                    ),
                    vim.vm.device.VirtualDeviceSpec(
                        operation=vim.vm.device.VirtualDeviceSpec.Operation.add,
                        fileOperation=vim.vm.device.VirtualDeviceSpec.FileOperation.create,
                        device=self._child_disk(disk),
                    ),
                ]
            )
            self.wait_for_task(vm.ReconfigVM_Task(spec=spec), "create_delta_disk")

    @staticmethod
    def _child_disk(disk: Any) -> Any:
        parent = disk.backing
        backing = type(parent)(
            fileName=f"[{parent.datastore.name}]",
            datastore=parent.datastore,
            diskMode=parent.diskMode,
            parent=parent,
        )
        return vim.vm.device.VirtualDisk(
            key=disk.key,
            controllerKey=disk.controllerKey,
            unitNumber=disk.unitNumber,
            capacityInKB=disk.capacityInKB,
            backing=backing,
        )

    def wait_for_task(self, task: Any, task_name: str) -> Any:
        """Block until ``task`` finishes; return its result."""
        try:
            WaitForTask(task, si=self.service_instance)
        except vmodl.MethodFault as e:
            logger.error(f"Task {task_name} failed: {e.msg}", task_name=task_name)
            raise TaskError(e.msg or type(e).__name__, task_name) from e
        return task.info.result


class VSphereNetworkPlanner:
    """
    Maps requested network names onto the template's NICs.

    The i-th network name re-points the template's i-th ethernet card. Names
    beyond the number of existing cards become new vmxnet3 cards, which can
    only be added after the clone exists.
    """

    def __init__(self, inventory: VSphereInventory) -> None:
        self.inventory = inventory

    def compute_device_changes(
        self, template: Any, options: BootstrapOptions
    ) -> Tuple[List[Any], List[Any]]:
        cards = [
            device
            for device in template.config.hardware.device
            if isinstance(device, vim.vm.device.VirtualEthernetCard)
        ]
        additions: List[Any] = []
        changes: List[Any] = []

        for index, network_name in enumerate(options.network_name or ()):
            backing = self._backing_for(self.inventory.find_network(network_name))

            if index < len(cards):
                card = cards[index]
                card.backing = backing
                changes.append(
                    vim.vm.device.VirtualDeviceSpec(
                        operation=vim.vm.device.VirtualDeviceSpec.Operation.edit,
                        device=card,
                    )
                )
            else:
                card = vim.vm.device.VirtualVmxnet3(
                    key=-(index + 1),
                    backing=backing,
                    connectable=vim.vm.device.VirtualDevice.ConnectInfo(
                        startConnected=True, allowGuestControl=True, connected=True
                    ),
                )
                additions.append(
                    vim.vm.device.VirtualDeviceSpec(
                        operation=vim.vm.device.VirtualDeviceSpec.Operation.add,
                        device=card,
                    )
                )
            logger.debug(
                f"NIC {index} -> {network_name}",
                network=network_name,
                change="edit" if index < len(cards) else "add",
            )

        return additions, changes

    @staticmethod
    def _backing_for(network: Any) -> Any:
        if isinstance(network, vim.dvs.DistributedVirtualPortgroup):
            return vim.vm.device.VirtualEthernetCard.DistributedVirtualPortBackingInfo(
                port=vim.dvs.PortConnection(
                    portgroupKey=network.key,
                    switchUuid=network.config.distributedVirtualSwitch.uuid,
                )
            )
        return vim.vm.device.VirtualEthernetCard.NetworkBackingInfo(
            network=network, deviceName=network.name
        )
