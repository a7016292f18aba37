from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from app.core.enums import DepartmentType
from app.repositories.department_repository import DepartmentRepository
from app.services.department_keywords import (
    DEFAULT_DEPARTMENT,
    DEPARTMENT_KEYWORDS,
    aliases_for,
    keyword_confidence,
    score_text,
)
from app.utils.mongo import serialize_mongo, with_id

logger = logging.getLogger(__name__)

# classifier answers below this are treated like no answer
MIN_CLASSIFIER_CONFIDENCE = 0.3
FALLBACK_CONFIDENCE_FACTOR = 0.7

ROUTABLE_DEPARTMENTS = {d.value for d in DepartmentType if d is not DepartmentType.other}


class DepartmentRoutingEngine:
    def __init__(self, departments: DepartmentRepository, classifier=None):
        self.departments = departments
        self.classifier = classifier

    # -------------------------
    # Detection
    # -------------------------
    def detect_by_keywords(self, description: str, category: str = "") -> Dict[str, Any]:
        department, score, matched = score_text(f"{description} {category or ''}")
        return {
            "department": department,
            "confidence": keyword_confidence(score),
            "reasoning": f"Keyword matching ({score} points from {len(matched)} keywords)",
            "analysis_method": "keyword_fallback",
            "keywords_matched": matched,
        }

    async def detect(self, description: str, category: str = "") -> Dict[str, Any]:
        if self.classifier is None:
            return self.detect_by_keywords(description, category)
        text = f"{description}\nCategory: {category}" if category else description
        try:
            answer = await self.classifier.classify(text, DEPARTMENT_KEYWORDS)
        except Exception as exc:
            logger.warning("Classifier unavailable, using keyword scoring: %s", exc)
            return self.detect_by_keywords(description, category)

        department = (answer or {}).get("department")
        confidence = float((answer or {}).get("confidence") or 0.0)
        if department not in ROUTABLE_DEPARTMENTS or confidence < MIN_CLASSIFIER_CONFIDENCE:
            logger.info("Classifier answer %r (%.2f) rejected, using keyword scoring", department, confidence)
            return self.detect_by_keywords(description, category)
        return {
            "department": department,
            "confidence": confidence,
            "reasoning": answer.get("reasoning") or "",
            "analysis_method": "ai",
            "keywords_matched": [],
        }

    # -------------------------
    # Location cascade
    # -------------------------
    async def find_departments(self, department: str, location: Dict[str, Any]) -> Tuple[List[dict], Optional[str]]:
        types = aliases_for(department)
        city = (location.get("city") or "").strip()
        district = (location.get("district") or "").strip()
        state = (location.get("state") or "").strip()

        tiers = []
        if city:
            tiers.append(("exact_city", {"city": city}))
            tiers.append(("partial_city", {"city_partial": city}))
        if district:
            tiers.append(("district", {"district": district}))
        if state:
            tiers.append(("state", {"state": state}))

        for tier, criteria in tiers:
            found = await self.departments.find_by_types(types, **criteria)
            if found:
                logger.info("Found %d %s candidate(s) at tier %s", len(found), department, tier)
                return found, tier
        return [], None

    # -------------------------
    # Entry point
    # -------------------------
    async def route(
        self,
        description: Optional[str],
        category: str = "",
        location: Optional[Dict[str, Any]] = None,
        detection: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not description or not location:
            return {
                "success": False,
                "error": "Invalid complaint data - missing description or location",
            }

        if not detection or detection.get("department") not in ROUTABLE_DEPARTMENTS:
            detection = await self.detect(description, category)

        detected = detection["department"]
        confidence = float(detection.get("confidence") or 0.0)
        reasoning = detection.get("reasoning") or ""
        is_fallback = False

        found, tier = await self.find_departments(detected, location)
        if not found:
            is_fallback = True
            confidence *= FALLBACK_CONFIDENCE_FACTOR
            if detected != DEFAULT_DEPARTMENT:
                found, tier = await self.find_departments(DEFAULT_DEPARTMENT, location)
            reasoning = f"{reasoning} (no {detected} available for this location)".strip()

        assigned = found[0] if found else None
        if assigned is None:
            logger.warning(
                "No department available for %s in %s/%s; manual assignment needed",
                detected, location.get("city"), location.get("state"),
            )

        return {
            "success": True,
            "detectedDepartment": detected,
            "assignedDepartment": serialize_mongo(with_id(assigned)) if assigned else None,
            "confidence": round(confidence, 4),
            "reasoning": reasoning,
            "is_fallback": is_fallback,
            "analysis_method": detection.get("analysis_method"),
            "keywords_matched": detection.get("keywords_matched", []),
            "location_tier": tier,
            "requires_manual_assignment": assigned is None,
        }
