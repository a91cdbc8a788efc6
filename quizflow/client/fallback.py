"""Bundled static question set.

Served when the reference data endpoints are unreachable so a session can
still proceed, and used to seed an empty database.
"""

from __future__ import annotations

from quizflow.models.question import Category, Question

_IMAGE_BASE = "https://dvv8w2q8s3qot.cloudfront.net/website_images/assets/male"

SECTIONS = [
    {"id": 1, "title": "About", "subtitle": "You"},
    {"id": 2, "title": "Hair", "subtitle": "Health"},
    {"id": 3, "title": "Internal", "subtitle": "Health"},
    {"id": 4, "title": "Scalp", "subtitle": "Assessment"},
]


def _stage(value: str, label: str, folder: str) -> dict:
    return {
        "value": value,
        "label": label,
        "images": [f"{_IMAGE_BASE}/{folder}/image_m_1.webp", f"{_IMAGE_BASE}/{folder}/image_m_2.webp"],
    }


def _choices(*pairs: tuple) -> list[dict]:
    out = []
    for pair in pairs:
        value, label = pair[0], pair[1]
        opt = {"value": value, "label": label}
        if len(pair) > 2:
            opt["subLabel"] = pair[2]
        out.append(opt)
    return out


QUESTIONS = [
    {
        "id": "name",
        "section": 1,
        "question": "Before we start, can we get your name?",
        "type": "text",
        "disclaimer": "*Your data is safe with us. We follow strict security measures to protect your "
        "privacy and never share your information without consent.",
    },
    {
        "id": "phone",
        "section": 1,
        "question": "Phone Number",
        "type": "text",
        "disclaimer": "*Your contact details will be used by our hair coach to reach out to you via "
        "call/sms/whatsapp.",
    },
    {
        "id": "gender",
        "section": 1,
        "question": "Gender",
        "type": "gender",
        "options": _choices(("male", "Male"), ("female", "Female")),
    },
    {
        "id": "age",
        "section": 1,
        "question": "How old are you?",
        "type": "number",
    },
    {
        "id": "hair-loss-stage",
        "section": 2,
        "question": "Which image best describes your hair loss?",
        "type": "image",
        "options": [
            _stage("stage-1", "Stage-1", "stage1"),
            _stage("stage-2", "Stage-2", "stage2"),
            _stage("stage-3", "Stage-3", "stage3"),
            _stage("stage-4", "Stage-4", "stage4"),
            _stage("stage-5", "Stage-5", "stage5"),
            _stage("stage-6", "Stage-6", "stage6"),
            _stage("coin-size-patch", "Coin Size Patch", "coinSizePatch"),
            _stage("heavy-hair-fall", "Heavy Hair Fall", "heavyHairFall"),
        ],
    },
    {
        "id": "dandruff",
        "section": 2,
        "question": "Do you have dandruff?",
        "type": "single",
        "options": _choices(
            ("no", "No"),
            ("mild", "Mild dandruff (small white flakes)"),
            ("heavy", "Heavy dandruff (sticky dandruff found in nails on scratching or visible on clothes)"),
            (
                "psoriasis",
                "Diagnosed with Psoriasis / Seborrheic Dermatitis",
                "A skin condition that causes red, dry patches on your scalp.",
            ),
        ),
    },
    {
        "id": "sleep",
        "section": 3,
        "question": "How well do you sleep?",
        "type": "single",
        "options": _choices(
            ("peaceful", "Very peacefully for 6-8 hours"),
            ("disturbed", "Disturbed sleep (wake up multiple times at night)"),
            ("difficulty", "Difficulty falling asleep"),
        ),
    },
    {
        "id": "stress",
        "section": 3,
        "question": "How stressed are you?",
        "type": "single",
        "options": _choices(
            ("none", "None"),
            ("low", "Low"),
            ("moderate", "Moderate (work, family etc)"),
            ("high", "High (Loss of close one, separation, home, illness)"),
        ),
    },
    {
        "id": "constipation",
        "section": 3,
        "question": "Do you feel constipated?",
        "type": "single",
        "options": _choices(
            ("no", "No / Once in a while"),
            ("yes", "Yes (fewer than 3 stools a week)"),
            ("unable", "Unable to pass stool properly / feeling unsatisfied after passing stools"),
            ("ibs", "Suffering from Irritable Bowel Syndrome"),
        ),
    },
    {
        "id": "gas",
        "section": 3,
        "question": "Do you have Gas, Acidity or Bloating?",
        "type": "single",
        "options": _choices(
            ("no", "No"),
            ("sometimes", "Sometimes (1-2 times a week or when I eat out)"),
            ("often", "Often (3+ times a week)"),
        ),
    },
    {
        "id": "energy",
        "section": 3,
        "question": "How are your energy levels during the day?",
        "type": "single",
        "options": _choices(
            ("high", "Always high / Normal energy levels throughout the day"),
            ("low-morning", "Low when I wake up, then gradually increase"),
            ("low-afternoon", "Very low in the afternoon"),
            ("low-evening", "Low by evening/night"),
            ("always-low", "Always low"),
        ),
    },
    {
        "id": "supplements",
        "section": 3,
        "question": "Are you currently taking any supplements or vitamins for hair?",
        "type": "single",
        "options": _choices(("yes", "Yes"), ("no", "No")),
    },
    {
        "id": "scalp-photo",
        "section": 4,
        "question": "Upload your scalp picture, for our hair experts to check.",
        "type": "upload",
    },
]


def bundled_questions() -> list[Question]:
    out = []
    for position, raw in enumerate(QUESTIONS):
        options = [dict(opt, order=i) for i, opt in enumerate(raw.get("options", []))]
        out.append(Question.model_validate({**raw, "order": position, "options": options}))
    return out


def bundled_categories() -> list[Category]:
    return [
        Category(id=f"cat-{s['id']}", title=s["title"], subtitle=s["subtitle"], order=s["id"])
        for s in SECTIONS
    ]


def bundled_reference_data() -> tuple[list[Question], list[Category]]:
    return bundled_questions(), bundled_categories()


__all__ = ["SECTIONS", "QUESTIONS", "bundled_questions", "bundled_categories", "bundled_reference_data"]
