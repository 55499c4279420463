from kubegraph.rules.base import BaseRelationRule
from kubegraph.rules.owner import OwnerReferenceRule
from kubegraph.rules.routing import RoutingRule
from kubegraph.rules.scale import ScaleTargetRule
from kubegraph.rules.selector import LabelSelectorRule
from kubegraph.rules.service_account import ServiceAccountRule
from kubegraph.rules.volume import VolumeReferenceRule


def default_rules() -> list[BaseRelationRule]:
    """
    Return the built-in rules in evaluation order.

    The order fixes the order of relations within each node. New relation
    types are added by appending a rule here.
    """
    return [
        OwnerReferenceRule(),
        LabelSelectorRule(),
        VolumeReferenceRule(),
        ServiceAccountRule(),
        RoutingRule(),
        ScaleTargetRule(),
    ]


__all__ = [
    "BaseRelationRule",
    "OwnerReferenceRule",
    "LabelSelectorRule",
    "VolumeReferenceRule",
    "ServiceAccountRule",
    "RoutingRule",
    "ScaleTargetRule",
    "default_rules",
]
