"""
Clone request assembly.

This module composes placement, NIC changes and guest customization into a
single CloneRequest ready to be turned into a vSphere CloneSpec.
"""

from typing import Any, Mapping, Optional, Union

from .customization import CustomizationPlanner
from .exceptions import ConfigurationError
from .inventory import InventoryResolver, NetworkChangePlanner
from .logging import logger
from .models import BootstrapOptions, CloneRequest, ConfigOverrides
from .progress import LoggingProgressSink, ProgressSink
from .relocation import RelocationPlanner
from .validation import OptionValidator


class CloneSpecBuilder:
    """
    Builds clone requests.

    Args:
        inventory: Resolves host, pool, datastore and stored spec names
        network_planner: Computes NIC changes when ``network_name`` is set
        progress: Receives progress notifications
        environ: Environment used for credential overrides (default: os.environ)

    A builder keeps no state between calls and can be shared.
    """

    def __init__(
        self,
        inventory: InventoryResolver,
        network_planner: Optional[NetworkChangePlanner] = None,
        progress: Optional[ProgressSink] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.progress = progress or LoggingProgressSink()
        self.network_planner = network_planner
        self.relocation = RelocationPlanner(inventory, self.progress)
        self.customization = CustomizationPlanner(inventory, self.progress, environ)

    def build(
        self,
        template: Any,
        vm_name: str,
        options: Union[BootstrapOptions, Mapping[str, Any], None],
    ) -> CloneRequest:
        """
        Build the clone request for ``vm_name``.

        Args:
            template: Source VM or template handle
            vm_name: Name of the VM to create
            options: Clone options, raw or already validated

        Returns:
            CloneRequest: The assembled request, powered off and not a template

        Raises:
            ValidationError: If the options violate a placement, network or
                hostname rule
            NotFoundError: If an inventory lookup fails
        """
        vm_name = OptionValidator.validate_vm_name(vm_name)
        options = BootstrapOptions.from_mapping(options)

        logger.info(
            f"Building clone request for {vm_name}",
            vm_name=vm_name,
            template=getattr(template, "name", None),
        )

        device_changes: tuple = ()
        device_additions: tuple = ()
        if options.network_name is not None:
            if self.network_planner is None:
                raise ConfigurationError(
                    "network_name is set but no network change planner is configured"
                )
            additions, changes = self.network_planner.compute_device_changes(
                template, options
            )
            device_additions = tuple(additions)
            device_changes = tuple(changes)

        config = ConfigOverrides(
            annotation=options.annotation,
            num_cpus=options.num_cpus,
            memory_mb=options.memory_mb,
            device_changes=device_changes,
        )

        placement = self.relocation.plan(template, options)
        customization = self.customization.plan(template, vm_name, options)

        return CloneRequest(
            placement=placement,
            config=config,
            customization=customization,
            power_on=False,
            use_template_flag=False,
            device_additions=device_additions,
        )


def build_clone_request(
    template: Any,
    target_name: str,
    options: Union[BootstrapOptions, Mapping[str, Any], None],
    inventory: InventoryResolver,
    network_planner: Optional[NetworkChangePlanner] = None,
    progress: Optional[ProgressSink] = None,
) -> CloneRequest:
    """Build a single clone request with a throwaway builder."""
    builder = CloneSpecBuilder(inventory, network_planner, progress)
    return builder.build(template, target_name, options)
