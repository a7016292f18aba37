from app.models.common import oid_str
from app.utils.mongo import serialize_mongo


def to_user_out(doc: dict) -> dict:
    """
    One stable API shape for citizens; never carries the password hash.
    """
    warnings = doc.get("warnings") or {"count": 0, "history": []}
    return serialize_mongo({
        "id": oid_str(doc["_id"]),
        "name": doc.get("name", ""),
        "email": doc.get("email"),
        "phone": doc.get("phone"),
        "city": doc.get("city"),
        "state": doc.get("state"),
        "district": doc.get("district"),
        "role": "user",
        "points": doc.get("points", 0),
        "warnings": {"count": warnings.get("count", 0)},
        "accountStatus": doc.get("accountStatus", "active"),
        "isBlacklisted": doc.get("isBlacklisted", False),
        "createdAt": doc.get("createdAt"),
    })


def to_admin_out(doc: dict) -> dict:
    return serialize_mongo({
        "id": oid_str(doc["_id"]),
        "adminId": doc.get("adminId"),
        "name": doc.get("name", ""),
        "email": doc.get("email"),
        "role": "admin",
        "assignedCity": doc.get("assignedCity"),
        "assignedState": doc.get("assignedState"),
    })


def to_department_out(doc: dict) -> dict:
    return serialize_mongo({
        "id": oid_str(doc["_id"]),
        "departmentId": doc.get("departmentId"),
        "name": doc.get("name", ""),
        "departmentType": doc.get("departmentType"),
        "role": "department",
        "assignedCity": doc.get("assignedCity"),
        "assignedState": doc.get("assignedState"),
        "assignedDistrict": doc.get("assignedDistrict"),
    })
