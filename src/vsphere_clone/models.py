"""
Data models for vSphere clone operations.

This module defines the data structures used throughout the clone request
builder. Caller-supplied options are validated with pydantic; the assembled
Clone Request is a tree of frozen dataclasses so two builds from the same
inputs compare equal.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError


def _as_tuple(value: Any) -> Any:
    """Accept a single string where a list of strings is expected."""
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    return tuple(value)


# ---------------------------------------------------------------------------
# Options (input)
# ---------------------------------------------------------------------------


class IpSettingsOptions(BaseModel):
    """The ``ipsettings`` block of a structured customization spec."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    ip: Optional[str] = None
    subnet_mask: Optional[str] = Field(default=None, alias="subnetMask")
    gateway: Optional[Tuple[str, ...]] = None
    dns_server_list: Optional[Tuple[str, ...]] = Field(
        default=None, alias="dnsServerList"
    )

    @field_validator("gateway", "dns_server_list", mode="before")
    @classmethod
    def wrap_lists(cls, v: Any) -> Any:
        return _as_tuple(v)


class StructuredSpec(BaseModel):
    """Guest customization described inline by the caller."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    kind: Literal["structured"] = "structured"
    domain: Optional[str] = None
    hostname: Optional[str] = None
    ip_settings: Optional[IpSettingsOptions] = Field(default=None, alias="ipsettings")
    hw_clock_utc: Optional[bool] = None
    time_zone: Optional[str] = None
    win_time_zone: Optional[int] = None
    org_name: Optional[str] = None
    product_id: Optional[str] = None
    run_once: Optional[Tuple[str, ...]] = None
    domain_admin: Optional[str] = Field(default=None, alias="domainAdmin")
    domain_admin_password: Optional[str] = Field(
        default=None, alias="domainAdminPassword", repr=False
    )

    @field_validator("run_once", mode="before")
    @classmethod
    def wrap_run_once(cls, v: Any) -> Any:
        return _as_tuple(v)


class NamedSpec(BaseModel):
    """Reference to a customization spec already stored in vCenter."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["named"] = "named"
    name: str


CustomizationSpecRef = Union[StructuredSpec, NamedSpec]


class SshOptions(BaseModel):
    """Initial guest credentials."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    user: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    port: int = Field(default=22, gt=0, le=65535)
    paranoid: bool = False


class BootstrapOptions(BaseModel):
    """Options controlling placement, hardware and guest identity of a clone."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    host: Optional[str] = None
    resource_pool: Optional[str] = None
    datastore: Optional[str] = None
    use_linked_clone: bool = False
    annotation: Optional[str] = None
    num_cpus: Optional[int] = Field(default=None, gt=0)
    memory_mb: Optional[int] = Field(default=None, gt=0)
    network_name: Optional[Tuple[str, ...]] = None
    customization_spec: Optional[CustomizationSpecRef] = None
    hostname: Optional[str] = None
    ssh: SshOptions = Field(default_factory=SshOptions)

    @field_validator("network_name", mode="before")
    @classmethod
    def wrap_network_names(cls, v: Any) -> Any:
        return _as_tuple(v)

    @field_validator("customization_spec", mode="before")
    @classmethod
    def classify_customization_spec(cls, v: Any) -> Any:
        """Decide once whether the spec is inline or a reference by name."""
        if v is None or isinstance(v, (StructuredSpec, NamedSpec)):
            return v
        if isinstance(v, str):
            return NamedSpec(name=v)
        if isinstance(v, Mapping):
            return StructuredSpec.model_validate(dict(v))
        raise ValueError(
            "customization_spec must be a mapping or the name of a stored spec"
        )

    @classmethod
    def from_mapping(
        cls, data: Union["BootstrapOptions", Mapping[str, Any], None]
    ) -> "BootstrapOptions":
        """
        Validate caller options.

        Args:
            data: Raw options mapping, an existing instance, or None

        Returns:
            BootstrapOptions: Validated options

        Raises:
            ValidationError: If the options are malformed
        """
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(dict(data or {}))
        except PydanticValidationError as e:
            raise ValidationError(f"invalid options: {e}", "options") from e


# ---------------------------------------------------------------------------
# Clone Request (output)
# ---------------------------------------------------------------------------


class DiskMoveMode(Enum):
    """How the clone's disks relate to the source disks."""

    NONE = "none"
    LINKED_CHILD = "moveChildMostDiskBacking"


@dataclass(frozen=True)
class RelocationPlan:
    """Where the new VM will live."""

    host: Any = None
    pool: Any = None
    datastore: Any = None
    disk_move_mode: DiskMoveMode = DiskMoveMode.NONE


@dataclass(frozen=True)
class ConfigOverrides:
    """Hardware settings applied to the clone."""

    annotation: Optional[str] = None
    num_cpus: Optional[int] = None
    memory_mb: Optional[int] = None
    device_changes: Tuple[Any, ...] = ()
    cpu_hot_add_enabled: bool = True
    memory_hot_add_enabled: bool = True
    cpu_hot_remove_enabled: bool = True


@dataclass(frozen=True)
class DhcpIp:
    """Address assigned by DHCP."""


@dataclass(frozen=True)
class StaticIp:
    """Fixed address."""

    ip_address: str


@dataclass(frozen=True)
class IpSettings:
    """Per-adapter IP configuration."""

    ip: Union[DhcpIp, StaticIp]
    subnet_mask: Optional[str] = None
    gateway: Optional[Tuple[str, ...]] = None
    dns_server_list: Optional[Tuple[str, ...]] = None
    dns_domain: Optional[str] = None

    @property
    def is_static(self) -> bool:
        return isinstance(self.ip, StaticIp)


@dataclass(frozen=True)
class GlobalIpSettings:
    dns_server_list: Tuple[str, ...] = ()
    dns_suffix_list: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LinuxIdentity:
    hostname: str
    domain: str
    hw_clock_utc: Optional[bool] = None
    time_zone: Optional[str] = None


@dataclass(frozen=True)
class DomainJoin:
    """Join a named Active Directory domain."""

    domain: str
    domain_admin: Optional[str] = None
    domain_admin_password: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class WorkgroupJoin:
    workgroup: str = "WORKGROUP"


@dataclass(frozen=True)
class GuiUnattended:
    """Sysprep unattended-setup block."""

    password: Optional[str] = field(default=None, repr=False)
    time_zone: Optional[int] = None
    auto_logon: bool = True
    auto_logon_count: int = 1


@dataclass(frozen=True)
class UserData:
    computer_name: str
    full_name: Optional[str] = None
    org_name: Optional[str] = None
    product_id: Optional[str] = None


@dataclass(frozen=True)
class WindowsIdentity:
    """Sysprep identity for Windows guests."""

    identification: Union[DomainJoin, WorkgroupJoin]
    gui_unattended: GuiUnattended
    user_data: UserData
    run_once: Optional[Tuple[str, ...]] = None

    @property
    def hostname(self) -> str:
        return self.user_data.computer_name


Identity = Union[LinuxIdentity, WindowsIdentity]


@dataclass(frozen=True)
class CustomizationPayload:
    """Guest identity and network settings applied at first boot."""

    identity: Identity
    global_ip_settings: GlobalIpSettings
    ip_settings: IpSettings


@dataclass(frozen=True)
class CloneRequest:
    """
    A fully assembled clone request.

    ``customization`` is either a CustomizationPayload built from inline
    options, the handle of a stored spec, or None. ``device_additions`` holds
    NICs that can only be added once the clone exists.
    """

    placement: RelocationPlan
    config: ConfigOverrides = field(default_factory=ConfigOverrides)
    customization: Any = None
    power_on: bool = False
    use_template_flag: bool = False
    device_additions: Tuple[Any, ...] = ()

    def summary(self) -> Dict[str, Any]:
        """Plain-data view of the request, suitable for JSON or YAML output."""
        placement = self.placement
        data: Dict[str, Any] = {
            "placement": {
                "host": handle_name(placement.host),
                "pool": handle_name(placement.pool),
                "datastore": handle_name(placement.datastore),
                "disk_move_mode": placement.disk_move_mode.value,
            },
            "power_on": self.power_on,
            "template": self.use_template_flag,
            "config": {
                "annotation": self.config.annotation,
                "num_cpus": self.config.num_cpus,
                "memory_mb": self.config.memory_mb,
                "device_changes": len(self.config.device_changes),
                "device_additions": len(self.device_additions),
            },
            "customization": None,
        }

        payload = self.customization
        if isinstance(payload, CustomizationPayload):
            identity = payload.identity
            ip = payload.ip_settings
            custom: Dict[str, Any] = {
                "identity": "windows" if isinstance(identity, WindowsIdentity) else "linux",
                "hostname": identity.hostname,
                "ip": ip.ip.ip_address if ip.is_static else "dhcp",
                "subnet_mask": ip.subnet_mask,
                "dns_servers": list(payload.global_ip_settings.dns_server_list),
                "dns_suffixes": list(payload.global_ip_settings.dns_suffix_list),
            }
            if isinstance(identity, WindowsIdentity):
                ident = identity.identification
                if isinstance(ident, DomainJoin):
                    custom["join_domain"] = ident.domain
                else:
                    custom["join_workgroup"] = ident.workgroup
            data["customization"] = custom
        elif payload is not None:
            data["customization"] = "stored spec"

        return data


def handle_name(handle: Any) -> Optional[str]:
    """Best-effort display name for an inventory handle."""
    if handle is None:
        return None
    name = getattr(handle, "name", None)
    return str(name) if name is not None else str(handle)
