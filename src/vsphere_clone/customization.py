"""
Guest customization planning.

Builds the identity and network settings the guest applies on first boot.
Inline customization is turned into a CustomizationPayload; a reference to a
stored spec is resolved through the inventory and passed through unchanged.
"""

import os
from typing import Any, Mapping, Optional, Protocol

from .exceptions import ValidationError
from .inventory import InventoryResolver, source_guest_id
from .logging import logger
from .models import (
    BootstrapOptions,
    CustomizationPayload,
    DhcpIp,
    DomainJoin,
    GlobalIpSettings,
    GuiUnattended,
    Identity,
    IpSettings,
    LinuxIdentity,
    NamedSpec,
    StaticIp,
    StructuredSpec,
    UserData,
    WindowsIdentity,
    WorkgroupJoin,
)
from .progress import LoggingProgressSink, ProgressSink
from .validation import hostname_for

# Domain value meaning "do not join a domain"
LOCAL_DOMAIN = "local"
DEFAULT_WORKGROUP = "WORKGROUP"

# Environment variable that overrides the configured domain admin password
DOMAIN_ADMIN_PASSWORD_ENV = "domainAdminPassword"


class IdentityBuilder(Protocol):
    """Builds the guest identity for one OS family."""

    def build(
        self, template: Any, options: BootstrapOptions, target_name: str
    ) -> Identity: ...


def _spec_hostname(options: BootstrapOptions, target_name: str) -> str:
    spec = options.customization_spec
    default_name = target_name if options.hostname is None else options.hostname
    return hostname_for(spec, default_name)


class LinuxIdentityBuilder:
    def build(
        self, template: Any, options: BootstrapOptions, target_name: str
    ) -> LinuxIdentity:
        spec = options.customization_spec
        return LinuxIdentity(
            hostname=_spec_hostname(options, target_name),
            domain=spec.domain,
            hw_clock_utc=spec.hw_clock_utc,
            time_zone=spec.time_zone,
        )


class WindowsIdentityBuilder:
    """Builds sysprep identity: domain or workgroup membership and auto-logon."""

    def __init__(
        self,
        progress: ProgressSink,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.progress = progress
        self.environ = environ

    def build(
        self, template: Any, options: BootstrapOptions, target_name: str
    ) -> WindowsIdentity:
        spec = options.customization_spec
        environ = os.environ if self.environ is None else self.environ

        if spec.domain and spec.domain != LOCAL_DOMAIN:
            admin_password = environ.get(DOMAIN_ADMIN_PASSWORD_ENV)
            if admin_password is None:
                admin_password = spec.domain_admin_password
            identification: Any = DomainJoin(
                domain=spec.domain,
                domain_admin=spec.domain_admin,
                domain_admin_password=admin_password,
            )
            self.progress.report(
                f"joining domain {spec.domain} with user: {spec.domain_admin}"
            )
        else:
            identification = WorkgroupJoin(workgroup=DEFAULT_WORKGROUP)

        return WindowsIdentity(
            identification=identification,
            gui_unattended=GuiUnattended(
                password=options.ssh.password,
                time_zone=spec.win_time_zone,
                auto_logon=True,
                auto_logon_count=1,
            ),
            user_data=UserData(
                computer_name=_spec_hostname(options, target_name),
                full_name=spec.org_name,
                org_name=spec.org_name,
                product_id=spec.product_id,
            ),
            run_once=spec.run_once,
        )


def classify_guest(guest_id: str) -> str:
    """Return ``"windows"`` or ``"linux"`` for a vSphere guest id."""
    return "windows" if guest_id.startswith("win") else "linux"


class CustomizationPlanner:
    """Builds the customization part of a clone request."""

    def __init__(
        self,
        inventory: InventoryResolver,
        progress: Optional[ProgressSink] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.inventory = inventory
        self.progress = progress or LoggingProgressSink()
        self.builders = {
            "linux": LinuxIdentityBuilder(),
            "windows": WindowsIdentityBuilder(self.progress, environ),
        }

    def identity_builder_for(self, template: Any) -> IdentityBuilder:
        family = classify_guest(source_guest_id(template))
        logger.debug(f"Using {family} guest identity", guest_family=family)
        return self.builders[family]

    def plan(
        self, template: Any, target_name: str, options: BootstrapOptions
    ) -> Any:
        """
        Build the guest customization for a clone.

        Args:
            template: Source VM or template handle
            target_name: Name of the VM being created; the default hostname
            options: Validated clone options

        Returns:
            CustomizationPayload for inline options, the stored spec for a
            named reference, or None when no customization was requested

        Raises:
            ValidationError: If the domain or subnet mask is missing, or the
                hostname is invalid
        """
        spec = options.customization_spec
        if spec is None:
            return None

        if isinstance(spec, NamedSpec):
            return self.inventory.find_customization_spec(spec.name)

        if not spec.domain:
            raise ValidationError("domain is required", "domain")

        ip_settings = self._ip_settings(spec, target_name)
        global_ip_settings = GlobalIpSettings(
            dns_server_list=ip_settings.dns_server_list or (),
            dns_suffix_list=(spec.domain,),
        )
        identity = self.identity_builder_for(template).build(
            template, options, target_name
        )

        return CustomizationPayload(
            identity=identity,
            global_ip_settings=global_ip_settings,
            ip_settings=ip_settings,
        )

    def _ip_settings(self, spec: StructuredSpec, target_name: str) -> IpSettings:
        ip_options = spec.ip_settings

        ip: Any = DhcpIp()
        subnet_mask = None
        gateway = None
        if ip_options is not None and ip_options.ip is not None:
            if not ip_options.subnet_mask:
                raise ValidationError(
                    "subnetMask is required for static ip", "ip_settings"
                )
            ip = StaticIp(ip_address=ip_options.ip)
            subnet_mask = ip_options.subnet_mask
            gateway = ip_options.gateway
            self.progress.report(
                f"customizing {target_name} with static IP {ip_options.ip}"
            )

        dns_server_list = None
        if ip_options is not None and ip_options.dns_server_list is not None:
            dns_server_list = ip_options.dns_server_list
            self.progress.report(
                f"customizing {target_name} with DNS: {', '.join(dns_server_list)}"
            )

        return IpSettings(
            ip=ip,
            subnet_mask=subnet_mask,
            gateway=gateway,
            dns_server_list=dns_server_list,
            dns_domain=spec.domain,
        )
