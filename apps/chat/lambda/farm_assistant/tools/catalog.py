"""Static catalog of the farm tools the model may call."""

from .registry import ToolRegistry, ToolSpec

_COORDINATES = {
    "latitude": {"type": "number", "minimum": -90, "maximum": 90, "description": "Latitude coordinate (-90 to 90)"},
    "longitude": {"type": "number", "minimum": -180, "maximum": 180, "description": "Longitude coordinate (-180 to 180)"},
    "location": {"type": "string", "description": "Location name (alternative to coordinates)"},
}
_ORG_ID = {"orgId": {"type": "string", "description": "Organization ID (fetched automatically when omitted)"}}
_PRIORITY = {
    "type": "string",
    "enum": ["low", "medium", "high", "urgent"],
    "description": "Priority level",
}

WEATHER_TOOLS = [
    ToolSpec(
        name="getCurrentWeather",
        description="Get current weather conditions for a location with agricultural insights",
        parameters={"type": "object", "properties": dict(_COORDINATES), "required": []},
        category="weather",
    ),
    ToolSpec(
        name="getWeatherForecast",
        description="Get the weather forecast for a location (1-7 days)",
        parameters={
            "type": "object",
            "properties": {
                **_COORDINATES,
                "days": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 7,
                    "description": "Number of forecast days (1-7)",
                },
            },
            "required": [],
        },
        category="weather",
    ),
    ToolSpec(
        name="searchLocations",
        description="Search for locations by name and get coordinates",
        parameters={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Location name or partial name"},
                "limit": {"type": "integer", "minimum": 1, "maximum": 10, "description": "Maximum results"},
            },
            "required": ["query"],
        },
        category="weather",
    ),
]

MARKET_TOOLS = [
    ToolSpec(
        name="getEUMarketPrices",
        description="Get EU agricultural market prices (per ton) for a sector and member state",
        parameters={
            "type": "object",
            "properties": {
                "sector": {
                    "type": "string",
                    "enum": ["cereals", "oilseeds", "dairy", "beef", "pigmeat", "fruits", "vegetables"],
                    "description": "Market sector",
                },
                "product": {"type": "string", "description": "Product name, e.g. maize or wheat"},
                "memberState": {"type": "string", "description": "Two-letter EU country code"},
                "period": {"type": "string", "description": "Time period, e.g. 2024 or 2024-05"},
            },
            "required": ["sector"],
        },
        category="market",
    ),
    ToolSpec(
        name="getEUProductionData",
        description="Get EU agricultural production volumes (not prices) for a sector",
        parameters={
            "type": "object",
            "properties": {
                "sector": {"type": "string", "enum": ["cereals", "oilseeds", "dairy", "meat"]},
                "memberState": {"type": "string", "description": "Two-letter EU country code"},
                "year": {"type": "integer", "minimum": 2000, "maximum": 2100},
            },
            "required": ["sector"],
        },
        category="market",
    ),
    ToolSpec(
        name="getUSDAMarketPrices",
        description="Get USDA market prices for a commodity",
        parameters={
            "type": "object",
            "properties": {
                "commodity": {"type": "string", "description": "Commodity name, e.g. corn"},
                "region": {"type": "string", "description": "US region or state"},
            },
            "required": ["commodity"],
        },
        category="market",
    ),
]

FIELD_TOOLS = [
    ToolSpec(
        name="getOrganizations",
        description="List the farm organizations the user can access",
        category="field",
        requires_data_source=True,
    ),
    ToolSpec(
        name="getFields",
        description="List the fields of an organization with their area and status",
        parameters={"type": "object", "properties": dict(_ORG_ID), "required": []},
        category="field",
        requires_data_source=True,
    ),
    ToolSpec(
        name="getFieldBoundary",
        description="Get the boundary geometry of a field",
        parameters={
            "type": "object",
            "properties": {**_ORG_ID, "fieldId": {"type": "string", "description": "Field ID"}},
            "required": ["fieldId"],
        },
        category="field",
        requires_data_source=True,
    ),
    ToolSpec(
        name="getFieldOperationHistory",
        description="Get past operations (planting, spraying, harvest) for a field",
        parameters={
            "type": "object",
            "properties": {
                **_ORG_ID,
                "fieldId": {"type": "string", "description": "Field ID"},
                "operationType": {
                    "type": "string",
                    "enum": ["seeding", "application", "harvest", "tillage"],
                },
            },
            "required": ["fieldId"],
        },
        category="field",
        requires_data_source=True,
    ),
]

EQUIPMENT_TOOLS = [
    ToolSpec(
        name="getEquipment",
        description="List the machines and implements of an organization",
        parameters={"type": "object", "properties": dict(_ORG_ID), "required": []},
        category="equipment",
        requires_data_source=True,
    ),
    ToolSpec(
        name="getEquipmentAlerts",
        description="Get current alerts and warnings for equipment",
        parameters={
            "type": "object",
            "properties": {
                "equipmentId": {"type": "string", "description": "Equipment ID (all when omitted)"},
                "alertType": {
                    "type": "string",
                    "enum": ["maintenance_due", "error", "warning", "fuel_low", "hours_high"],
                },
            },
            "required": [],
        },
        category="equipment",
    ),
    ToolSpec(
        name="scheduleEquipmentMaintenance",
        description="Schedule maintenance for farm equipment",
        parameters={
            "type": "object",
            "properties": {
                "equipmentId": {"type": "string"},
                "maintenanceType": {
                    "type": "string",
                    "enum": ["routine", "repair", "inspection", "oil_change", "filter_replacement", "tire_check"],
                },
                "scheduledDate": {"type": "string", "description": "YYYY-MM-DD or YYYY-MM-DDTHH:mm:ss"},
                "priority": _PRIORITY,
                "estimatedCost": {"type": "number"},
            },
            "required": ["equipmentId", "maintenanceType", "scheduledDate"],
        },
        category="equipment",
    ),
]

OPERATION_TOOLS = [
    ToolSpec(
        name="scheduleFieldOperation",
        description="Schedule a field operation (planting, harvesting, spraying, etc.)",
        parameters={
            "type": "object",
            "properties": {
                "fieldId": {"type": "string"},
                "operationType": {
                    "type": "string",
                    "enum": ["planting", "harvesting", "spraying", "fertilizing", "cultivation", "irrigation"],
                },
                "scheduledDate": {"type": "string", "description": "YYYY-MM-DD or YYYY-MM-DDTHH:mm:ss"},
                "equipmentId": {"type": "string"},
                "notes": {"type": "string"},
                "priority": _PRIORITY,
            },
            "required": ["fieldId", "operationType", "scheduledDate"],
        },
        category="operations",
    ),
    ToolSpec(
        name="updateFieldStatus",
        description="Update the current status of a field (planted, growing, ready for harvest, etc.)",
        parameters={
            "type": "object",
            "properties": {
                "fieldId": {"type": "string"},
                "status": {
                    "type": "string",
                    "enum": ["prepared", "planted", "growing", "ready_for_harvest", "harvested", "fallow"],
                },
                "cropType": {"type": "string"},
                "notes": {"type": "string"},
            },
            "required": ["fieldId", "status"],
        },
        category="operations",
    ),
]

LIVESTOCK_TOOLS = [
    ToolSpec(
        name="getLivestockHerds",
        description="List livestock herds with head count and species",
        parameters={
            "type": "object",
            "properties": {
                "species": {"type": "string", "enum": ["cattle", "sheep", "goats", "pigs", "poultry"]},
            },
            "required": [],
        },
        category="livestock",
        requires_data_source=True,
    ),
    ToolSpec(
        name="recordLivestockEvent",
        description="Record a livestock event such as a birth, treatment, weighing or movement",
        parameters={
            "type": "object",
            "properties": {
                "herdId": {"type": "string"},
                "eventType": {
                    "type": "string",
                    "enum": ["birth", "treatment", "weighing", "movement", "sale", "death"],
                },
                "date": {"type": "string", "description": "YYYY-MM-DD"},
                "headCount": {"type": "integer", "minimum": 1},
                "notes": {"type": "string"},
            },
            "required": ["herdId", "eventType", "date"],
        },
        category="livestock",
        requires_data_source=True,
    ),
]

ALL_TOOLS = [
    *WEATHER_TOOLS,
    *MARKET_TOOLS,
    *FIELD_TOOLS,
    *EQUIPMENT_TOOLS,
    *OPERATION_TOOLS,
    *LIVESTOCK_TOOLS,
]


def build_default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register_all(ALL_TOOLS)
    return registry
