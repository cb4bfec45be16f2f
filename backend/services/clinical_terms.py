"""
Clinical Terms for echocardiogram qualification.

Provides the built-in vocabulary:
- Cardiac symptoms, cardiac history, objective cardiac findings and risk factors
- Surface-form variants for each term (matched on word boundaries)
- Cue lists for negation, uncertainty and explicit presence

Weights encode clinical significance: structural history and objective
findings outrank symptoms, which outrank risk factors. Table order is the
scan order and breaks weight ties for the primary indication.
"""

from models.analysis_models import ClinicalTerm, TermCategory


def _terms(category: TermCategory, table: dict[str, tuple[int, list[str]]]) -> tuple[ClinicalTerm, ...]:
    return tuple(
        ClinicalTerm(term=name, category=category, weight=weight, variations=variations)
        for name, (weight, variations) in table.items()
    )


# Key: term identity, Value: (weight, surface forms)
CARDIAC_SYMPTOMS = _terms(TermCategory.SYMPTOM, {
    "Chest Pain": (3, [
        "chest pain",
        "chest pressure",
        "chest tightness",
        "chest discomfort",
        "angina",
        "substernal pain",
    ]),
    "Dyspnea": (3, [
        "shortness of breath",
        "dyspnea on exertion",
        "dyspnea",
        "dyspnoea",
        "sob",
        "doe",
        "breathlessness",
    ]),
    "Orthopnea": (3, [
        "orthopnea",
        "pnd",
    ]),
    "Syncope": (3, [
        "syncope",
        "syncopal episode",
        "passed out",
        "fainting",
        "loss of consciousness",
    ]),
    "Presyncope": (2, [
        "presyncope",
        "near-syncope",
        "lightheadedness",
        "dizziness",
    ]),
    "Palpitations": (2, [
        "palpitations",
        "palpitation",
        "heart racing",
        "racing heart",
        "irregular heartbeat",
    ]),
    "Edema": (2, [
        "lower extremity edema",
        "peripheral edema",
        "pedal edema",
        "leg swelling",
        "ankle swelling",
        "edema",
    ]),
    "Exercise Intolerance": (1, [
        "exercise intolerance",
        "decreased exercise tolerance",
        "exertional fatigue",
    ]),
})

CARDIAC_HISTORY = _terms(TermCategory.HISTORY, {
    "Myocardial Infarction": (5, [
        "myocardial infarction",
        "heart attack",
        "stemi",
        "nstemi",
        "mi",
    ]),
    "Congestive Heart Failure": (5, [
        "congestive heart failure",
        "heart failure",
        "chf",
        "hfref",
        "hfpef",
    ]),
    "Coronary Artery Disease": (4, [
        "coronary artery disease",
        "ischemic heart disease",
        "coronary disease",
        "cad",
    ]),
    "Acute Coronary Syndrome": (5, [
        "acute coronary syndrome",
        "unstable angina",
        "acs",
    ]),
    "Valvular Heart Disease": (5, [
        "valvular heart disease",
        "valve disease",
        "aortic stenosis",
        "aortic regurgitation",
        "mitral regurgitation",
        "mitral stenosis",
        "mitral valve prolapse",
    ]),
    "Cardiomyopathy": (5, [
        "cardiomyopathy",
        "dilated cardiomyopathy",
        "hypertrophic cardiomyopathy",
        "hcm",
    ]),
    "Atrial Fibrillation": (4, [
        "atrial fibrillation",
        "atrial flutter",
        "afib",
        "a-fib",
    ]),
    "Arrhythmia": (3, [
        "arrhythmia",
        "ventricular tachycardia",
        "supraventricular tachycardia",
        "svt",
        "heart block",
    ]),
    "Stroke or TIA": (4, [
        "stroke",
        "cerebrovascular accident",
        "cva",
        "transient ischemic attack",
        "tia",
    ]),
    "Endocarditis": (5, [
        "endocarditis",
        "infective endocarditis",
    ]),
    "Pulmonary Hypertension": (4, [
        "pulmonary hypertension",
        "pulmonary arterial hypertension",
    ]),
    "Congenital Heart Disease": (4, [
        "congenital heart disease",
        "atrial septal defect",
        "ventricular septal defect",
        "patent foramen ovale",
        "pfo",
    ]),
    "Prior Cardiac Surgery": (4, [
        "coronary artery bypass graft",
        "coronary artery bypass",
        "cabg",
        "valve replacement",
    ]),
})

CARDIAC_FINDINGS = _terms(TermCategory.FINDING, {
    "Abnormal EKG": (4, [
        "abnormal ekg",
        "abnormal ecg",
        "ekg abnormal",
        "ecg abnormal",
        "abnormal electrocardiogram",
        "st elevation",
        "st depression",
        "t wave inversion",
        "left bundle branch block",
        "lbbb",
    ]),
    "Heart Murmur": (4, [
        "heart murmur",
        "systolic murmur",
        "diastolic murmur",
        "murmur",
    ]),
    "Elevated Troponin": (5, [
        "elevated troponin",
        "troponin elevated",
        "positive troponin",
        "troponin leak",
    ]),
    "Elevated BNP": (4, [
        "elevated bnp",
        "bnp elevated",
        "elevated nt-probnp",
        "elevated pro-bnp",
    ]),
    "Cardiomegaly": (4, [
        "cardiomegaly",
        "enlarged heart",
        "enlarged cardiac silhouette",
    ]),
    "Reduced Ejection Fraction": (5, [
        "reduced ejection fraction",
        "low ejection fraction",
        "reduced ef",
        "low ef",
        "depressed ef",
        "lv dysfunction",
        "lv systolic dysfunction",
    ]),
    "Left Ventricular Hypertrophy": (4, [
        "left ventricular hypertrophy",
        "lvh",
    ]),
    "Pericardial Effusion": (5, [
        "pericardial effusion",
    ]),
    "Jugular Venous Distension": (3, [
        "jugular venous distension",
        "jugular venous distention",
        "jvd",
    ]),
    "S3 Gallop": (3, [
        "s3 gallop",
        "gallop",
    ]),
    "Abnormal Stress Test": (4, [
        "abnormal stress test",
        "positive stress test",
        "stress test abnormal",
    ]),
})

RISK_FACTORS = _terms(TermCategory.RISK_FACTOR, {
    "Hypertension": (2, [
        "hypertension",
        "htn",
        "high blood pressure",
        "elevated blood pressure",
        "normotensive",
    ]),
    "Diabetes": (2, [
        "diabetes mellitus",
        "type 2 diabetes",
        "diabetes",
        "diabetic",
        "nondiabetic",
        "t2dm",
        "dm",
    ]),
    "Hyperlipidemia": (2, [
        "hyperlipidemia",
        "dyslipidemia",
        "hypercholesterolemia",
        "high cholesterol",
        "hld",
    ]),
    "Smoking": (2, [
        "current smoker",
        "tobacco use",
        "smoker",
        "smoking",
        "smokes",
        "non-smoker",
        "nonsmoker",
    ]),
    "Obesity": (1, [
        "morbid obesity",
        "obesity",
        "obese",
    ]),
    "Family History of Heart Disease": (2, [
        "family history of heart disease",
        "family history of cad",
        "family history of sudden cardiac death",
    ]),
    "Chronic Kidney Disease": (2, [
        "chronic kidney disease",
        "end stage renal disease",
        "ckd",
        "esrd",
    ]),
    "Cardiotoxic Chemotherapy": (3, [
        "cardiotoxic chemotherapy",
        "anthracycline",
        "doxorubicin",
        "trastuzumab",
    ]),
    "Sleep Apnea": (1, [
        "obstructive sleep apnea",
        "sleep apnea",
        "osa",
    ]),
})

ALL_CLINICAL_TERMS: tuple[ClinicalTerm, ...] = (
    CARDIAC_SYMPTOMS + CARDIAC_HISTORY + CARDIAC_FINDINGS + RISK_FACTORS
)


# Cue phrases. Matched on word boundaries against lowercased text.
NEGATION_PATTERNS = (
    "no",
    "not",
    "denies",
    "denied",
    "denying",
    "negative for",
    "without",
    "ruled out",
    "asymptomatic",
    "absence of",
    "free of",
    "never",
    "resolved",
    # Attributed to someone other than the patient
    "family history of",
)

UNCERTAIN_PATTERNS = (
    "possible",
    "possibly",
    "probable",
    "rule out",
    "r/o",
    "?",
    "likely",
    "suspected",
    "suspicion of",
    "concerning for",
    "concern for",
    "questionable",
    "cannot exclude",
    "may have",
    "versus",
)

PRESENCE_PATTERNS = (
    "positive for",
    "confirmed",
    "diagnosed with",
    "diagnosis of",
    "history of",
    "hx of",
    "h/o",
    "known",
    "reports",
    "reported",
    "endorses",
    "complains of",
    "c/o",
    "presents with",
    "presenting with",
    "significant for",
    "evidence of",
    "consistent with",
    "demonstrates",
    "demonstrated",
    "revealed",
    "shows",
    "showed",
    "status post",
    "s/p",
    "treated for",
    "admitted for",
    "experiencing",
    "has",
)

COMPOUND_NEGATION_PREFIXES = (
    "non",
    "never",
)

NEGATED_COMPOUND_TERMS = (
    "nonsmoker",
    "non-smoker",
    "nondiabetic",
    "non-diabetic",
    "normotensive",
)
