"""Compute API contract consumed by the resource controllers.

Records are plain dicts shaped like the provider's JSON:

  placement group: ``{"group_name", "strategy", "state"}``
  subnet: ``{"subnet_id", "vpc_id", "state", "cidr_block",
  "availability_zone", "availability_zone_id", "map_public_ip_on_launch",
  "assign_ipv6_address_on_creation", "ipv6_cidr_block_association_set"}``
  CIDR association: ``{"association_id", "ipv6_cidr_block", "state"}``
  network interface: ``{"network_interface_id", "subnet_id", "status",
  "description", "attachment": {"attachment_id", "status"} | None}``

Failures raise ``ComputeAPIError`` carrying the provider's error code.
"""

from __future__ import annotations

from typing import Any, Protocol


class ComputeAPI(Protocol):
    """Create, describe, modify and delete compute objects."""

    def create_placement_group(self, name: str, strategy: str) -> dict[str, Any]:
        ...

    def describe_placement_groups(self, names: list[str]) -> list[dict[str, Any]]:
        """Return matching groups; unknown names yield an empty list or raise
        ``InvalidPlacementGroup.Unknown``."""
        ...

    def delete_placement_group(self, name: str) -> None:
        ...

    def create_subnet(
        self,
        *,
        vpc_id: str,
        cidr_block: str,
        availability_zone: str | None = None,
        availability_zone_id: str | None = None,
        ipv6_cidr_block: str | None = None,
    ) -> dict[str, Any]:
        """Create a subnet and return its record (including ``subnet_id``)."""
        ...

    def describe_subnets(self, subnet_ids: list[str]) -> list[dict[str, Any]]:
        ...

    def modify_subnet_attribute(
        self,
        subnet_id: str,
        *,
        map_public_ip_on_launch: bool | None = None,
        assign_ipv6_address_on_creation: bool | None = None,
    ) -> None:
        ...

    def associate_subnet_cidr_block(
        self, subnet_id: str, ipv6_cidr_block: str,
    ) -> dict[str, Any]:
        """Start an IPv6 CIDR association and return the association record."""
        ...

    def disassociate_subnet_cidr_block(self, association_id: str) -> dict[str, Any]:
        ...

    def delete_subnet(self, subnet_id: str) -> None:
        ...

    def describe_network_interfaces(
        self,
        *,
        subnet_id: str | None = None,
        network_interface_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        ...

    def detach_network_interface(self, attachment_id: str, *, force: bool = False) -> None:
        ...

    def delete_network_interface(self, network_interface_id: str) -> None:
        ...
