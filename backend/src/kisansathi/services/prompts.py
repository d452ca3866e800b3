"""
Kisan Sathi — Prompts centralisés (plan du lendemain, radio).
Note : les variables entre accolades {variable} sont remplies avec .format().
Les accolades doublées {{ }} restent telles quelles (JSON).
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

# Népal : UTC+05:45
NEPAL_TZ = timezone(timedelta(hours=5, minutes=45))

DEFAULT_CROP = "सामान्य"
DEFAULT_STAGE = "सामान्य"
DEFAULT_LOCATION = "नेपाल"

# =============================================================
# PLAN DU LENDEMAIN
# =============================================================
PLAN_SYSTEM_PROMPT = """You are Krishi Mitra, a Nepali farming coach.
Given the crop, growth stage, location and a few recent tips, create one short plan for what the farmer should do tomorrow.
- Write in simple Nepali, 3–5 sentences.
- Mention morning, afternoon, and evening actions if relevant.
- Be practical and low-cost.
- Do not invent exact pesticide doses; for any chemical, say they must confirm with स्थानीय कृषि कार्यालय / agrovet.
- Output plain text only, no bullet points, no greetings."""

PLAN_USER_TEMPLATE = """बाली: {crop}
चरण: {stage}
स्थान: {location}{recent_context}

भोलिको लागि एउटा छोटो योजना बनाइदिनुहोस् (बिहान, दिउँसो, साँझ)।"""

# =============================================================
# RADIO KRISHI
# =============================================================
RADIO_SYSTEM_PROMPT = """You are Krishi Radio AI, a friendly Nepali farming radio host.
You speak naturally to small farmers as if on a live radio program.

RULES:
- Output a JSON array of 5–8 short segments. Each segment is 1–2 sentences in very simple Nepali.
- Each segment should be an independent, practical farming tip or advice for the given crop, growth stage, season, and time of day.
- Do NOT number them ("पहिलो टिप", "दोस्रो टिप" etc.). Speak naturally, as if it's a small radio program flowing from one topic to the next.
- Use transitions like "अब अर्को कुरा…", "त्यसै गरी…", "एउटा सल्लाह दिन्छु…" to connect segments.
- Total speaking time of all segments combined: roughly 2–3 minutes.
- Avoid giving exact pesticide/chemical doses. Say they must confirm with स्थानीय कृषि कार्यालय / agrovet.
- Do NOT use any greeting in the first segment. Just start with a tip.
- Keep each segment under 40 words in Nepali.

OUTPUT FORMAT (strict JSON, no markdown):
[
  {"text": "segment text here", "pauseMs": 2000},
  {"text": "next segment", "pauseMs": 1500}
]

pauseMs should be between 1500 and 3000, varying naturally."""

RADIO_USER_TEMPLATE = """बाली: {crop}
चरण: {stage}
स्थान: {location}
समय: {time_of_day}

कृपया 5–8 वटा छोटा radio segments JSON array मा दिनुहोस्।"""

# Segments de secours (crédits IA épuisés)
FALLBACK_SEGMENTS = [
    "दाइ, खेतमा पानी धेरै जमेको छैन भनेर आज बेलुका एकचोटि हेर्नुहोस्।",
    "गहुँको बालीमा जरासम्म पानी पुगेको छ कि छैन, हल्का खन्ती चलाएर जाँच्नुस्।",
    "रासायनिक मल प्रयोग गर्नुअघि लेबल राम्ररी पढ्नुहोस् र मात्रा बारे स्थानीय कृषि कार्यालयसँग सल्लाह लिनुहोस्।",
    "बिरुवा सार्दा जरा नबिग्रिने गरी सावधानी अपनाउनुहोस्।",
    "माटो परीक्षण गराएर बाली अनुसारको मल प्रयोग गर्नुहोस्।",
    "सिँचाइ गर्दा बिहान वा बेलुकाको समय छान्नुहोस्।",
    "रोग वा कीरा लागेको शंका लागेमा तुरुन्तै कृषि प्राविधिकलाई सम्पर्क गर्नुहोस्।",
    "बाली लगाउनुअघि खेतको माटो राम्ररी जोत्नुहोस्।",
]


def time_of_day(now: Optional[datetime] = None) -> str:
    """Moment de la journée en heure du Népal."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    hour = now.astimezone(NEPAL_TZ).hour

    if hour < 10:
        return "बिहान (morning)"
    if hour < 14:
        return "दिउँसो (afternoon)"
    if hour < 18:
        return "साँझ (evening)"
    return "बेलुका (night)"


def build_plan_user_prompt(
    crop: Optional[str],
    stage: Optional[str],
    location: Optional[str],
    recent_tips: Optional[List[str]] = None,
) -> str:
    recent_context = ""
    if recent_tips:
        recent_context = "\n\nहालैका टिपहरू:\n" + "\n".join(recent_tips[:10])

    return PLAN_USER_TEMPLATE.format(
        crop=crop or DEFAULT_CROP,
        stage=stage or DEFAULT_STAGE,
        location=location or DEFAULT_LOCATION,
        recent_context=recent_context,
    )


def build_radio_user_prompt(
    crop: Optional[str],
    stage: Optional[str],
    location: Optional[str],
    now: Optional[datetime] = None,
) -> str:
    return RADIO_USER_TEMPLATE.format(
        crop=crop or DEFAULT_CROP,
        stage=stage or DEFAULT_STAGE,
        location=location or DEFAULT_LOCATION,
        time_of_day=time_of_day(now),
    )
