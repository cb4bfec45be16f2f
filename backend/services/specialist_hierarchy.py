"""
Specialist Credibility Hierarchy for clinical note processing.

Priority is a rank: 1 is the most credible source (cardiology), 4 the
least (unrelated specialties and routine follow-up). Lower numbers win.
Table order is detection precedence, so the most credible specialties
are listed first.
"""

from models.analysis_models import DetectedSpecialist, Specialist, Vocabulary
from services.text_scanner import first_phrase_match, fold_case


SPECIALIST_HIERARCHY: tuple[Specialist, ...] = (
    # HIGH PRIORITY
    Specialist(
        name="Cardiologist",
        variations=[
            "cardiologist",
            "cardiology",
            "cardiology consult",
            "cardiology note",
            "cardiac specialist",
            "heart specialist",
        ],
        priority=1,
        weight=10,
    ),
    Specialist(
        name="Interventional Cardiologist",
        variations=[
            "interventional cardiologist",
            "interventional cardiology",
            "cath lab",
            "cardiac catheterization",
        ],
        priority=1,
        weight=10,
    ),
    Specialist(
        name="Electrophysiologist",
        variations=["electrophysiologist", "electrophysiology", "ep study", "ep lab"],
        priority=1,
        weight=10,
    ),
    Specialist(
        name="Cardiac Surgeon",
        variations=[
            "cardiac surgeon",
            "cardiothoracic surgeon",
            "cardiac surgery",
            "cardiothoracic surgery",
            "heart surgeon",
        ],
        priority=1,
        weight=10,
    ),
    # MEDIUM-HIGH PRIORITY
    Specialist(
        name="Emergency Department",
        variations=[
            "emergency department",
            "emergency medicine",
            "emergency room",
            "emergency visit",
            "emergency physician",
            "ed visit",
            "ed",
            "er",
        ],
        priority=2,
        weight=8,
    ),
    Specialist(
        name="Hospital Admission",
        variations=[
            "hospital admission",
            "admission note",
            "inpatient note",
            "discharge summary",
            "inpatient",
            "admitted",
            "hospitalized",
        ],
        priority=2,
        weight=8,
    ),
    Specialist(
        name="Intensivist",
        variations=[
            "intensivist",
            "critical care",
            "intensive care",
            "cardiac icu",
            "icu",
            "ccu",
            "micu",
        ],
        priority=2,
        weight=8,
    ),
    Specialist(
        name="Pulmonologist",
        variations=["pulmonologist", "pulmonology", "pulmonary medicine", "lung specialist"],
        priority=2,
        weight=8,
    ),
    Specialist(
        name="Internal Medicine",
        variations=["internal medicine", "internist", "internal med"],
        priority=2,
        weight=8,
    ),
    Specialist(
        name="Hospitalist",
        variations=["hospitalist", "hospital medicine", "inpatient medicine"],
        priority=2,
        weight=8,
    ),
    # MEDIUM PRIORITY
    Specialist(
        name="Primary Care Physician",
        variations=[
            "primary care physician",
            "primary care provider",
            "primary care",
            "primary doctor",
            "pcp",
        ],
        priority=3,
        weight=5,
    ),
    Specialist(
        name="Family Medicine",
        variations=["family medicine", "family practice", "family physician", "family doctor"],
        priority=3,
        weight=5,
    ),
    Specialist(
        name="General Practice",
        variations=["general practice", "general practitioner", "gp"],
        priority=3,
        weight=5,
    ),
    # LOW PRIORITY
    Specialist(
        name="Other Specialist",
        variations=[
            "urology",
            "urologist",
            "dermatology",
            "dermatologist",
            "orthopedics",
            "orthopedic",
            "ophthalmology",
            "ophthalmologist",
            "neurology",
            "neurologist",
            "gastroenterology",
            "gastroenterologist",
            "endocrinology",
            "endocrinologist",
            "rheumatology",
            "rheumatologist",
            "psychiatry",
            "psychiatrist",
            "routine follow-up",
            "follow up visit",
            "follow-up",
        ],
        priority=4,
        weight=2,
    ),
)


def detect_specialist(text: str, vocabulary: Vocabulary) -> DetectedSpecialist | None:
    """
    Detect the authoring specialist of a piece of text.

    Returns the first table entry with a matching variant, so precedence
    follows table order rather than position in the text.
    """
    lower_text = fold_case(text)

    for specialist in vocabulary.specialists:
        for variation in specialist.variations:
            if first_phrase_match(lower_text, variation) is not None:
                return DetectedSpecialist(
                    name=specialist.name,
                    priority=specialist.priority,
                    weight=specialist.weight,
                    matched_text=variation,
                )

    return None


def get_specialist_info(name: str, vocabulary: Vocabulary) -> Specialist | None:
    """Look up a specialist by identity or by one of its variants."""
    lower_name = name.strip().lower()

    for specialist in vocabulary.specialists:
        if specialist.name.lower() == lower_name or lower_name in specialist.variations:
            return specialist

    return None


def compare_specialists(
    first: DetectedSpecialist | None,
    second: DetectedSpecialist | None,
) -> DetectedSpecialist | None:
    """Return the more credible of two specialists (first wins a full tie)."""
    if first is None:
        return second
    if second is None:
        return first

    # Lower priority number = higher priority
    if first.priority != second.priority:
        return first if first.priority < second.priority else second

    if second.weight > first.weight:
        return second

    return first
