"""
Main client class for vSphere clone operations.

This module connects to vCenter, builds clone requests for named templates and
submits them.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim, vmodl

from .builder import CloneSpecBuilder
from .config import AppConfig
from .exceptions import ConfigurationError, ConnectionError
from .inventory import VSphereInventory, VSphereNetworkPlanner
from .logging import logger
from .models import CloneRequest
from .progress import ProgressSink
from .vim_spec import to_clone_spec


class VSphereCloneClient:
    """
    Main client for vSphere clone operations.

    Args:
        config (AppConfig): Connection settings and default bootstrap options
        progress (Optional[ProgressSink]): Receives progress notifications

    Raises:
        ConfigurationError: If no vCenter host is configured
        ConnectionError: If unable to log in to vCenter
    """

    def __init__(self, config: AppConfig, progress: Optional[ProgressSink] = None) -> None:
        self.config = config
        self.progress = progress
        self.service_instance: Any = None
        self.inventory: Optional[VSphereInventory] = None
        self.builder: Optional[CloneSpecBuilder] = None

    def connect(self) -> None:
        """Open a session with vCenter."""
        host = self.config.vcenter_host
        if not host:
            raise ConfigurationError("vcenter_host is not configured")

        try:
            self.service_instance = SmartConnect(
                host=host,
                user=self.config.vcenter_user,
                pwd=self.config.vcenter_password,
                port=self.config.vcenter_port,
                disableSslCertValidation=self.config.insecure,
            )
        except vim.fault.InvalidLogin as e:
            raise ConnectionError("invalid login", host) from e
        except (OSError, vmodl.MethodFault) as e:
            raise ConnectionError(str(e), host) from e

        logger.info(f"Connected to vCenter {host}", host=host)
        self.inventory = VSphereInventory(self.service_instance, self.config.datacenter)
        self.builder = CloneSpecBuilder(
            self.inventory,
            network_planner=VSphereNetworkPlanner(self.inventory),
            progress=self.progress,
        )

    def disconnect(self) -> None:
        if self.service_instance is not None:
            Disconnect(self.service_instance)
            self.service_instance = None
            self.inventory = None
            self.builder = None

    def _require_connection(self) -> Tuple[VSphereInventory, CloneSpecBuilder]:
        if self.inventory is None or self.builder is None:
            self.connect()
        return self.inventory, self.builder  # type: ignore[return-value]

    def build_clone_request(
        self,
        template_name: str,
        vm_name: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[Any, CloneRequest]:
        """
        Build the clone request for a named template.

        Args:
            template_name: Name of the source VM or template
            vm_name: Name of the VM to create
            options: Bootstrap options, merged over the configured defaults

        Returns:
            Tuple of (template handle, CloneRequest)
        """
        inventory, builder = self._require_connection()
        template = inventory.find_vm(template_name)
        merged: Dict[str, Any] = self.config.merged_bootstrap_options(options)
        return template, builder.build(template, vm_name, merged)

    def clone(
        self,
        template_name: str,
        vm_name: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Build and submit a clone, then add any NICs the template lacked.

        Returns:
            The new VM handle
        """
        inventory, _ = self._require_connection()
        template, request = self.build_clone_request(template_name, vm_name, options)

        if self.config.vm_folder:
            folder = inventory.find_folder(self.config.vm_folder)
        else:
            folder = template.parent

        logger.info(
            f"Cloning {template_name} to {vm_name}",
            template=template_name,
            vm_name=vm_name,
        )
        task = template.CloneVM_Task(
            folder=folder, name=vm_name, spec=to_clone_spec(request)
        )
        vm = inventory.wait_for_task(task, "clone")

        if request.device_additions:
            spec = vim.vm.ConfigSpec(deviceChange=list(request.device_additions))
            inventory.wait_for_task(vm.ReconfigVM_Task(spec=spec), "add_nics")

        logger.info(f"Clone {vm_name} created", vm_name=vm_name)
        return vm

    def __enter__(self) -> "VSphereCloneClient":
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.disconnect()
