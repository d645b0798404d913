"""Read vendor extensions that tune the produced mock definitions.

Two extensions are recognised:

``info.x-microcks``
    Service-level ``labels`` and ``annotations``.

``<verb>.x-microcks-operation``
    Operation-level properties: a forced ``dispatcher`` and its
    ``dispatcherRules`` (a string, or an object such as a fallback
    envelope), a default ``delay`` in milliseconds, and
    ``parameterConstraints``.

Example::

    get:
      x-microcks-operation:
        delay: 100
        dispatcher: FALLBACK
        dispatcherRules: |-
          {"dispatcher": "URI_PARTS", "dispatcherRules": "id", "fallback": "Unknown"}
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from specmock.models import Metadata, Operation, ParameterConstraint

logger = logging.getLogger(__name__)

SERVICE_EXTENSION = "x-microcks"
OPERATION_EXTENSION = "x-microcks-operation"


def _string_map(node: Any) -> dict[str, str]:
    if not isinstance(node, dict):
        return {}
    return {str(key): "" if value is None else str(value) for key, value in node.items()}


def complete_metadata(metadata: Metadata, node: Any) -> Metadata:
    """Copy labels and annotations from a service extension node into *metadata*."""
    if not isinstance(node, dict):
        return metadata
    metadata.labels.update(_string_map(node.get("labels")))
    metadata.annotations.update(_string_map(node.get("annotations")))
    return metadata


def complete_operation_properties(operation: Operation, node: Any) -> Operation:
    """Copy dispatcher, delay and parameter constraints from an operation extension node.

    Unusable values (a non-integer delay, an invalid constraint) are logged
    and ignored.
    """
    if not isinstance(node, dict):
        return operation

    if "delay" in node:
        try:
            operation.default_delay = int(node["delay"])
        except (TypeError, ValueError):
            logger.warning(
                "Operation '%s' has a non-integer delay: %r", operation.name, node["delay"]
            )

    dispatcher = node.get("dispatcher")
    if isinstance(dispatcher, str) and dispatcher:
        operation.dispatcher = dispatcher
        rules = node.get("dispatcherRules")
        if isinstance(rules, (dict, list)):
            operation.dispatcher_rules = json.dumps(rules)
        elif rules is not None:
            operation.dispatcher_rules = str(rules)

    constraints = node.get("parameterConstraints")
    if isinstance(constraints, list):
        for raw in constraints:
            try:
                operation.parameter_constraints.append(ParameterConstraint.model_validate(raw))
            except ValidationError as exc:
                logger.warning(
                    "Operation '%s' has an invalid parameter constraint %r: %s",
                    operation.name,
                    raw,
                    exc,
                )

    return operation
