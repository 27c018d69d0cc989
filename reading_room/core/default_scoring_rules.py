from typing import Any, Dict


DEFAULT_SCORING_RULES: Dict[str, Dict[str, Dict[str, Any]]] = {
    "problem": {
        "revenue": {"enabled": True, "points": 10, "values": []},
        "company_size": {"enabled": True, "points": 10, "values": []},
        "industry_alignment": {"enabled": True, "points": 15, "values": []},
        "target_states": {"enabled": True, "points": 5, "values": []},
        "visited_target_pages": {
            "enabled": False,
            "points_per_unit": 10,
            "max_points": 30,
        },
        "multiple_visits": {"enabled": True, "points": 5, "minimum_count": 2},
        "role_match": {
            "enabled": False,
            "points": 5,
            "target_roles": {
                "decision_makers": ["CEO", "President", "Director", "VP", "Chief"],
                "technical": ["Engineer", "Developer", "CTO"],
                "marketing": ["Marketing", "CMO", "Brand"],
                "sales": ["Sales", "Business Development"],
            },
            "match_type": "contains",
        },
        "minimum_threshold": {"enabled": True, "required_score": 20},
    },
    "solution": {
        "email_open": {"enabled": True, "points_per_unit": 2, "max_points": None},
        "email_click": {"enabled": True, "points_per_unit": 5, "max_points": None},
        "email_multiple_click": {"enabled": True, "points": 8, "minimum_count": 2},
        "page_visit": {"enabled": True, "points_per_unit": 3, "max_points": 15},
        "key_page_visit": {
            "enabled": True,
            "points": 10,
            "detection_method": "url_pattern",
            "patterns": ["/pricing", "/demo", "/contact"],
        },
        "ad_engagement": {
            "enabled": True,
            "points": 5,
            "detection_method": "utm_source",
            "utm_sources": ["google", "linkedin", "facebook"],
        },
    },
    "offer": {
        "demo_request": {
            "enabled": True,
            "points": 25,
            "detection_method": "url_pattern",
            "patterns": ["/demo/requested", "/demo/confirmation"],
        },
        "contact_form": {
            "enabled": True,
            "points": 20,
            "detection_method": "utm_parameter",
            "utm_content": "form_submitted",
        },
        "pricing_page": {
            "enabled": True,
            "points": 15,
            "detection_method": "url_pattern",
            "patterns": ["/pricing", "/plans"],
        },
        "pricing_question": {
            "enabled": True,
            "points": 20,
            "detection_method": "utm_parameter",
            "utm_content": "pricing_inquiry",
        },
        "partner_referral": {
            "enabled": True,
            "points": 15,
            "detection_method": "utm_source",
            "utm_sources": ["partner_referral"],
        },
        "webinar_attendance": {
            "enabled": False,
            "points": 0,
            "detection_method": "utm_parameter",
            "utm_content": "",
        },
    },
}
