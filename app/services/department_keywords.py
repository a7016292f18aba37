from __future__ import annotations

import re
from typing import Dict, List, Tuple

from app.core.enums import DepartmentType

DEPARTMENT_KEYWORDS: Dict[str, List[str]] = {
    DepartmentType.fire.value: [
        "fire", "burning", "smoke", "flames", "burn", "fire hazard", "fire safety", "fire emergency",
        "fire accident", "gas leak", "explosion", "fire extinguisher", "firefighter", "fire station",
        "fire truck", "rescue", "emergency", "blaze", "arson", "fire alarm", "fire prevention",
    ],
    DepartmentType.police.value: [
        "crime", "theft", "robbery", "stolen", "assault", "violence", "harassment", "criminal",
        "law enforcement", "security", "vandalism", "drugs", "noise", "domestic violence", "accident",
        "traffic violation", "speeding", "drunk driving", "public safety", "suspicious",
        "criminal activity", "law and order", "police", "fir", "illegal", "unlawful", "fight", "dispute",
    ],
    DepartmentType.water.value: [
        "water", "pipe", "leak", "leakage", "burst", "water supply", "water pressure", "sewage",
        "drainage", "flood", "waterlog", "water quality", "contamination", "water shortage", "water bill",
        "water connection", "pipeline", "water treatment", "dirty water", "water waste", "plumbing",
        "sewer", "manhole", "water meter", "tap water", "drinking water", "water problem",
    ],
    DepartmentType.road.value: [
        "road", "pothole", "street", "highway", "traffic", "signal", "traffic light", "street light",
        "pavement", "road damage", "road construction", "road repair", "road maintenance", "traffic jam",
        "traffic congestion", "road sign", "zebra crossing", "footpath", "sidewalk", "bridge",
        "flyover", "road safety", "speed breaker", "divider", "asphalt", "tar road",
    ],
    DepartmentType.health.value: [
        "health", "medical", "hospital", "clinic", "doctor", "sanitation", "hygiene", "disease",
        "illness", "epidemic", "contamination", "food poisoning", "food safety", "public health",
        "health services", "medical emergency", "health hazard", "air quality", "pollution",
        "medical waste", "health inspection", "vaccination", "health center", "healthcare",
    ],
    DepartmentType.electricity.value: [
        "electricity", "power", "electric", "current", "voltage", "power cut", "power outage",
        "blackout", "electrical", "transformer", "power line", "electric pole", "electric wire",
        "short circuit", "electric shock", "power supply", "electrical fault", "meter reading",
        "electricity bill", "power failure", "electrical hazard", "electric connection", "load shedding",
    ],
    DepartmentType.municipal.value: [
        "waste", "garbage", "trash", "litter", "dumping", "cleaning", "sweeping", "municipal",
        "civic", "public toilet", "park", "garden", "street cleaning", "waste collection",
        "garbage collection", "solid waste", "waste management", "municipal services", "public amenities",
        "civic amenities", "building permission", "municipal tax", "city planning", "public spaces",
        "dustbin", "sanitation", "cleanliness", "municipal corporation",
    ],
}

# stored departmentType values accepted for each routed department
DEPARTMENT_TYPE_ALIASES: Dict[str, List[str]] = {
    DepartmentType.municipal.value: [
        "Municipal Corporation", "Garbage Department", "Waste Management", "Sanitation Department",
        "Civic Services", "Solid Waste Management", "Municipal Services",
    ],
    DepartmentType.fire.value: [
        "Fire Department", "Fire Services", "Emergency Services", "Fire and Safety", "Fire Brigade",
    ],
    DepartmentType.police.value: [
        "Police Department", "Law Enforcement", "Police Services", "Traffic Police", "Police Station",
    ],
    DepartmentType.road.value: [
        "Road Department", "Public Works", "Highway Department", "PWD", "Roads and Buildings",
        "Public Works Department", "Infrastructure Department",
    ],
    DepartmentType.water.value: [
        "Water Department", "Water Supply", "Water Board", "Irrigation Department", "Water Works",
        "Municipal Water",
    ],
    DepartmentType.health.value: [
        "Health Department", "Public Health", "Medical Services", "Healthcare", "Health Services",
        "Medical Department",
    ],
    DepartmentType.electricity.value: [
        "Electricity Department", "Power Department", "Electrical Services", "Energy Department",
        "Power Board", "Electricity Board",
    ],
}

DEFAULT_DEPARTMENT = DepartmentType.municipal.value


def aliases_for(department: str) -> List[str]:
    return DEPARTMENT_TYPE_ALIASES.get(department, [department])


def score_text(text: str) -> Tuple[str, int, List[str]]:
    """
    Best department by keyword score: a whole-word hit is worth 2,
    a substring-only hit 1. Ties keep the earlier department.
    """
    text = text.lower()
    best, best_score, best_matched = DEFAULT_DEPARTMENT, 0, []
    for department, keywords in DEPARTMENT_KEYWORDS.items():
        score = 0
        matched = []
        for keyword in keywords:
            if keyword not in text:
                continue
            score += 2 if re.search(rf"\b{re.escape(keyword)}\b", text) else 1
            matched.append(keyword)
        if score > best_score:
            best, best_score, best_matched = department, score, matched
    return best, best_score, best_matched


def keyword_confidence(score: int) -> float:
    if score <= 0:
        return 0.6
    return min(score * 0.2 + 0.5, 0.9)
