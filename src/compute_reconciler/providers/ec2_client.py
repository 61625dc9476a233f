"""EC2 implementation of ``ComputeAPI`` over a boto3 client.

Calls go straight to the boto3 EC2 client; throttling and transient
failures are retried by botocore's own retry handler (configured in
``ReconcilerSettings.build_client``). Whatever still fails surfaces here as
``ComputeAPIError`` carrying the EC2 ``Error.Code``, which is what the
probes classify.

Responses are flattened from EC2's CamelCase shapes into the snake_case
records described in ``contracts``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from ..observability.metrics import API_REQUESTS_TOTAL
from .errors import ComputeAPIError, ComputeTimeoutError

logger = logging.getLogger(__name__)


class Ec2ComputeClient:
    """ComputeAPI backed by ``boto3.client("ec2")``."""

    def __init__(self, ec2: Any) -> None:
        self.ec2 = ec2

    def close(self) -> None:
        self.ec2.close()

    def __enter__(self) -> Ec2ComputeClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def _translate(self, operation: str) -> Iterator[None]:
        try:
            yield
        except ClientError as exc:
            API_REQUESTS_TOTAL.labels(operation=operation, status="error").inc()
            raise _api_error(exc) from exc
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            API_REQUESTS_TOTAL.labels(operation=operation, status="timeout").inc()
            raise ComputeTimeoutError(str(exc)) from exc
        except BotoCoreError as exc:
            API_REQUESTS_TOTAL.labels(operation=operation, status="error").inc()
            raise ComputeAPIError(0, "", str(exc)) from exc
        API_REQUESTS_TOTAL.labels(operation=operation, status="ok").inc()

    def _call(self, operation: str, **params: Any) -> dict[str, Any]:
        logger.debug("EC2 %s", operation, extra={"operation": operation})
        with self._translate(operation):
            return getattr(self.ec2, operation)(**params)

    # ── Placement groups ─────────────────────────────────────────

    def create_placement_group(self, name: str, strategy: str) -> dict[str, Any]:
        response = self._call("create_placement_group", GroupName=name, Strategy=strategy)
        # Older API versions return no body for this call.
        group = response.get("PlacementGroup") or {
            "GroupName": name, "Strategy": strategy, "State": "pending",
        }
        return _placement_group_record(group)

    def describe_placement_groups(self, names: list[str]) -> list[dict[str, Any]]:
        response = self._call("describe_placement_groups", GroupNames=list(names))
        return [_placement_group_record(g) for g in response.get("PlacementGroups", [])]

    def delete_placement_group(self, name: str) -> None:
        self._call("delete_placement_group", GroupName=name)

    # ── Subnets ──────────────────────────────────────────────────

    def create_subnet(
        self,
        *,
        vpc_id: str,
        cidr_block: str,
        availability_zone: str | None = None,
        availability_zone_id: str | None = None,
        ipv6_cidr_block: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"VpcId": vpc_id, "CidrBlock": cidr_block}
        if availability_zone:
            params["AvailabilityZone"] = availability_zone
        if availability_zone_id:
            params["AvailabilityZoneId"] = availability_zone_id
        if ipv6_cidr_block:
            params["Ipv6CidrBlock"] = ipv6_cidr_block
        response = self._call("create_subnet", **params)
        subnet = response.get("Subnet") or {}
        if not subnet.get("SubnetId"):
            raise ComputeAPIError(0, "", "create_subnet response is missing SubnetId")
        return _subnet_record(subnet)

    def describe_subnets(self, subnet_ids: list[str]) -> list[dict[str, Any]]:
        response = self._call("describe_subnets", SubnetIds=list(subnet_ids))
        return [_subnet_record(s) for s in response.get("Subnets", [])]

    def modify_subnet_attribute(
        self,
        subnet_id: str,
        *,
        map_public_ip_on_launch: bool | None = None,
        assign_ipv6_address_on_creation: bool | None = None,
    ) -> None:
        # EC2 accepts a single attribute per call.
        changes = {
            "MapPublicIpOnLaunch": map_public_ip_on_launch,
            "AssignIpv6AddressOnCreation": assign_ipv6_address_on_creation,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            raise ValueError("modify_subnet_attribute needs at least one attribute")
        for attribute, value in changes.items():
            self._call(
                "modify_subnet_attribute",
                SubnetId=subnet_id,
                **{attribute: {"Value": bool(value)}},
            )

    def associate_subnet_cidr_block(
        self, subnet_id: str, ipv6_cidr_block: str,
    ) -> dict[str, Any]:
        response = self._call(
            "associate_subnet_cidr_block",
            SubnetId=subnet_id,
            Ipv6CidrBlock=ipv6_cidr_block,
        )
        return _association_record(response.get("Ipv6CidrBlockAssociation") or {})

    def disassociate_subnet_cidr_block(self, association_id: str) -> dict[str, Any]:
        response = self._call("disassociate_subnet_cidr_block", AssociationId=association_id)
        return _association_record(response.get("Ipv6CidrBlockAssociation") or {})

    def delete_subnet(self, subnet_id: str) -> None:
        self._call("delete_subnet", SubnetId=subnet_id)

    # ── Network interfaces ───────────────────────────────────────

    def describe_network_interfaces(
        self,
        *,
        subnet_id: str | None = None,
        network_interface_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if subnet_id:
            params["Filters"] = [{"Name": "subnet-id", "Values": [subnet_id]}]
        if network_interface_ids:
            params["NetworkInterfaceIds"] = list(network_interface_ids)

        records: list[dict[str, Any]] = []
        while True:
            response = self._call("describe_network_interfaces", **params)
            records.extend(
                _network_interface_record(i) for i in response.get("NetworkInterfaces", [])
            )
            token = response.get("NextToken")
            if not token:
                return records
            params["NextToken"] = token

    def detach_network_interface(self, attachment_id: str, *, force: bool = False) -> None:
        self._call("detach_network_interface", AttachmentId=attachment_id, Force=force)

    def delete_network_interface(self, network_interface_id: str) -> None:
        self._call("delete_network_interface", NetworkInterfaceId=network_interface_id)


# ── Translation ──────────────────────────────────────────────────


def _api_error(exc: ClientError) -> ComputeAPIError:
    error = exc.response.get("Error", {})
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return ComputeAPIError(
        int(status),
        str(error.get("Code") or ""),
        str(error.get("Message") or exc.operation_name),
    )


def _placement_group_record(group: dict[str, Any]) -> dict[str, Any]:
    return {
        "group_name": group.get("GroupName", ""),
        "strategy": group.get("Strategy", ""),
        "state": group.get("State"),
    }


def _association_record(association: dict[str, Any]) -> dict[str, Any]:
    return {
        "association_id": association.get("AssociationId", ""),
        "ipv6_cidr_block": association.get("Ipv6CidrBlock", ""),
        "state": association.get("Ipv6CidrBlockState", {}).get("State"),
    }


def _subnet_record(subnet: dict[str, Any]) -> dict[str, Any]:
    return {
        "subnet_id": subnet.get("SubnetId", ""),
        "vpc_id": subnet.get("VpcId", ""),
        "state": subnet.get("State"),
        "cidr_block": subnet.get("CidrBlock", ""),
        "availability_zone": subnet.get("AvailabilityZone", ""),
        "availability_zone_id": subnet.get("AvailabilityZoneId", ""),
        "map_public_ip_on_launch": bool(subnet.get("MapPublicIpOnLaunch", False)),
        "assign_ipv6_address_on_creation": bool(
            subnet.get("AssignIpv6AddressOnCreation", False)
        ),
        "ipv6_cidr_block_association_set": [
            _association_record(a) for a in subnet.get("Ipv6CidrBlockAssociationSet", [])
        ],
    }


def _network_interface_record(interface: dict[str, Any]) -> dict[str, Any]:
    attachment = interface.get("Attachment")
    return {
        "network_interface_id": interface.get("NetworkInterfaceId", ""),
        "subnet_id": interface.get("SubnetId", ""),
        "status": interface.get("Status"),
        "description": interface.get("Description", ""),
        "attachment": (
            {
                "attachment_id": attachment.get("AttachmentId", ""),
                "status": attachment.get("Status"),
            }
            if attachment
            else None
        ),
    }
