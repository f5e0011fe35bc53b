"""
Placement planning for clones.

Decides the host, resource pool, datastore and disk-move mode of the new VM.
"""

from typing import Any, Optional

from .exceptions import ValidationError
from .inventory import InventoryResolver, root_resource_pool, source_is_template
from .logging import logger
from .models import BootstrapOptions, DiskMoveMode, RelocationPlan
from .progress import LoggingProgressSink, ProgressSink


def disk_move_mode_for(template: Any, use_linked_clone: bool) -> DiskMoveMode:
    """Disk-move mode a clone of ``template`` gets; templates never link."""
    if use_linked_clone and not source_is_template(template):
        return DiskMoveMode.LINKED_CHILD
    return DiskMoveMode.NONE


class RelocationPlanner:
    """Builds the RelocationPlan of a clone request."""

    def __init__(
        self, inventory: InventoryResolver, progress: Optional[ProgressSink] = None
    ) -> None:
        self.inventory = inventory
        self.progress = progress or LoggingProgressSink()

    def plan(self, template: Any, options: BootstrapOptions) -> RelocationPlan:
        """
        Work out where the clone will live.

        Args:
            template: Source VM or template handle
            options: Validated clone options

        Returns:
            RelocationPlan: Host, pool, datastore and disk-move mode

        Raises:
            ValidationError: If the source is a template and no resource pool
                can be determined
            NotFoundError: If a named host, pool or datastore does not exist

        Note:
            With ``use_linked_clone`` on a non-template source, delta disks are
            created on the source before this returns. That change is not
            rolled back if a later step of the build fails.
        """
        from_template = source_is_template(template)

        host = None
        if options.host is not None:
            host = self.inventory.find_host(options.host)

        if options.resource_pool:
            pool = self.inventory.find_resource_pool(options.resource_pool)
        elif from_template and host is not None:
            pool = root_resource_pool(host)
        elif from_template:
            raise ValidationError(
                "host or resource_pool required for template clone", "placement"
            )
        else:
            pool = None

        disk_move_mode = disk_move_mode_for(template, options.use_linked_clone)
        if disk_move_mode is DiskMoveMode.LINKED_CHILD:
            self.inventory.create_delta_disk(template)
        elif options.use_linked_clone:
            # Templates cannot carry delta disks
            logger.warning(
                "linked clone ignored for template source",
                template=getattr(template, "name", None),
            )
            self.progress.report("linked clone ignored for template source")

        datastore = None
        if options.datastore:
            datastore = self.inventory.find_datastore(options.datastore)

        logger.debug(
            "Placement resolved",
            host=options.host,
            resource_pool=options.resource_pool,
            datastore=options.datastore,
            disk_move_mode=disk_move_mode.value,
        )

        return RelocationPlan(
            host=host, pool=pool, datastore=datastore, disk_move_mode=disk_move_mode
        )
