"""Well-known names of the object-mapper service.

These values are part of the bus contract and must match the mapper exactly.
"""

from __future__ import annotations

MAPPER_SERVICE = "xyz.openbmc_project.ObjectMapper"
MAPPER_PATH = "/xyz/openbmc_project/object_mapper"
MAPPER_INTERFACE = "xyz.openbmc_project.ObjectMapper"

ASSOCIATION_INTERFACE = "xyz.openbmc_project.Association"
ENDPOINTS_PROPERTY = "endpoints"

PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

# D-Bus signatures of the mapper calls.
GET_OBJECT_SIGNATURE = "sas"
GET_SUBTREE_SIGNATURE = "sias"
PROPERTY_GET_SIGNATURE = "ss"

INT32_MAX = 2**31 - 1
