"""TwiML documents for the verification call flow."""

from __future__ import annotations

from xml.sax.saxutils import escape

VOICE = "alice"

_PROMPTS = {
    "en": {
        "locale": "en-US",
        "confirm": "Press 1 to confirm your complaint.",
        "reject": "Press 2 to reject your complaint.",
        "repeat": "I repeat - Press 1 to confirm, Press 2 to reject.",
        "timeout": "No response received. Your complaint verification has timed out.",
        "verified": "Thank you. Your complaint has been confirmed and sent to the concerned department.",
        "rejected": "Your complaint has been cancelled. Thank you.",
        "invalid": "Invalid input. Your complaint could not be verified.",
    },
    "hi": {
        "locale": "hi-IN",
        "confirm": "आपकी शिकायत की पुष्टि के लिए 1 दबाएं।",
        "reject": "शिकायत रद्द करने के लिए 2 दबाएं।",
        "repeat": "मैं दोहराता हूं - पुष्टि के लिए 1 दबाएं, रद्द करने के लिए 2 दबाएं।",
        "timeout": "कोई जवाब नहीं मिला। आपकी शिकायत की पुष्टि समय समाप्त हो गई।",
        "verified": "धन्यवाद। आपकी शिकायत की पुष्टि हो गई है।",
        "rejected": "आपकी शिकायत रद्द कर दी गई है। धन्यवाद।",
        "invalid": "अमान्य इनपुट। आपकी शिकायत की पुष्टि नहीं हो सकी।",
    },
}


def _say(text: str, locale: str) -> str:
    return f'<Say voice="{VOICE}" language="{locale}">{escape(text)}</Say>'


def _doc(*parts: str) -> str:
    return '<?xml version="1.0" encoding="UTF-8"?><Response>' + "".join(parts) + "</Response>"


def language(lang: str) -> str:
    return lang if lang in _PROMPTS else "en"


def greeting(base_url: str, complaint_id: str) -> str:
    base = base_url.rstrip("/")
    return _doc(
        _say("Hello! We are calling to verify your complaint.", "en-US"),
        '<Pause length="1"/>',
        f'<Gather input="dtmf" timeout="10" numDigits="1" '
        f'action="{base}/complaints/language-selection/{complaint_id}" method="POST">',
        _say("Press 1 for English.", "en-US"),
        _say("हिंदी के लिए 2 दबाएं।", "hi-IN"),
        "</Gather>",
        _say("No language selected. Continuing in English.", "en-US"),
        f'<Redirect method="POST">{base}/complaints/verify-complaint/{complaint_id}?lang=en</Redirect>',
    )


def verification_prompt(base_url: str, complaint_id: str, lang: str) -> str:
    base = base_url.rstrip("/")
    p = _PROMPTS[language(lang)]
    return _doc(
        f'<Gather input="dtmf" timeout="15" numDigits="1" '
        f'action="{base}/complaints/process-verification/{complaint_id}?lang={language(lang)}" method="POST">',
        _say(p["confirm"], p["locale"]),
        '<Pause length="2"/>',
        _say(p["reject"], p["locale"]),
        '<Pause length="3"/>',
        _say(p["repeat"], p["locale"]),
        "</Gather>",
        _say(p["timeout"], p["locale"]),
        f'<Redirect method="POST">{base}/complaints/verification-timeout/{complaint_id}</Redirect>',
    )


def outcome(result: str, lang: str = "en") -> str:
    p = _PROMPTS[language(lang)]
    text = p.get(result, p["invalid"])
    return _doc(_say(text, p["locale"]), "<Hangup/>")


def hangup(message: str = "") -> str:
    if not message:
        return _doc("<Hangup/>")
    return _doc(_say(message, "en-US"), "<Hangup/>")
