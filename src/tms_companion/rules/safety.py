"""Red-flag catalog, safety questionnaires, disclaimers and clinical limits."""

from datetime import datetime

from tms_companion.models.safety import (
    ClinicalGuidelines,
    Disclaimer,
    RedFlag,
    RedFlagCategory,
    RedFlagTrigger,
    SafetyAction,
    SafetyCheck,
    SafetyQuestion,
    Severity,
)

RED_FLAGS: tuple[RedFlag, ...] = (
    # Critical medical
    RedFlag(
        id="progressive_neurological",
        category=RedFlagCategory.MEDICAL,
        severity=Severity.CRITICAL,
        title="Progressive Neurological Symptoms",
        description="Weakness, numbness, or loss of function that is worsening over time",
        recommendation="Seek immediate medical evaluation. Do not delay.",
        requires_immediate_attention=True,
        medical_consultation_required=True,
        contraindications=("TMS treatment should be suspended until medical clearance",),
    ),
    RedFlag(
        id="bowel_bladder_dysfunction",
        category=RedFlagCategory.MEDICAL,
        severity=Severity.CRITICAL,
        title="Bowel or Bladder Dysfunction",
        description="New onset incontinence or retention of urine/stool",
        recommendation=(
            "This may indicate cauda equina syndrome. "
            "Seek emergency medical care immediately."
        ),
        requires_immediate_attention=True,
        medical_consultation_required=True,
        contraindications=("Emergency medical evaluation required",),
    ),
    RedFlag(
        id="fever_with_pain",
        category=RedFlagCategory.MEDICAL,
        severity=Severity.HIGH,
        title="Fever with Back Pain",
        description="Fever accompanying back pain, especially with night sweats",
        recommendation=(
            "May indicate infection or other serious condition. Consult physician promptly."
        ),
        requires_immediate_attention=True,
        medical_consultation_required=True,
    ),
    RedFlag(
        id="trauma_history",
        category=RedFlagCategory.MEDICAL,
        severity=Severity.HIGH,
        title="Recent Trauma or Injury",
        description="Pain following recent accident, fall, or physical trauma",
        recommendation="Physical causes must be ruled out before considering TMS approach.",
        requires_immediate_attention=False,
        medical_consultation_required=True,
    ),
    RedFlag(
        id="cancer_history",
        category=RedFlagCategory.MEDICAL,
        severity=Severity.HIGH,
        title="History of Cancer",
        description="Personal history of cancer, especially with new or changing pain patterns",
        recommendation="Medical evaluation required to rule out metastases or recurrence.",
        requires_immediate_attention=False,
        medical_consultation_required=True,
    ),
    # Psychological
    RedFlag(
        id="suicidal_ideation",
        category=RedFlagCategory.PSYCHOLOGICAL,
        severity=Severity.CRITICAL,
        title="Suicidal Thoughts or Plans",
        description="Thoughts of self-harm or suicide",
        recommendation=(
            "Contact emergency services (988 Suicide & Crisis Lifeline) "
            "or go to nearest emergency room."
        ),
        requires_immediate_attention=True,
        medical_consultation_required=True,
        contraindications=("Requires immediate professional mental health intervention",),
    ),
    RedFlag(
        id="severe_depression",
        category=RedFlagCategory.PSYCHOLOGICAL,
        severity=Severity.HIGH,
        title="Severe Depression",
        description="Persistent feelings of hopelessness, inability to function daily",
        recommendation=(
            "Professional mental health evaluation recommended "
            "before continuing TMS approach."
        ),
        requires_immediate_attention=False,
        medical_consultation_required=True,
    ),
    RedFlag(
        id="psychosis_symptoms",
        category=RedFlagCategory.PSYCHOLOGICAL,
        severity=Severity.CRITICAL,
        title="Psychotic Symptoms",
        description="Hallucinations, delusions, or severe confusion",
        recommendation="Immediate psychiatric evaluation required.",
        requires_immediate_attention=True,
        medical_consultation_required=True,
    ),
    # Symptom based
    RedFlag(
        id="saddle_anesthesia",
        category=RedFlagCategory.SYMPTOM,
        severity=Severity.CRITICAL,
        title="Saddle Anesthesia",
        description="Numbness in the groin, buttocks, or inner thighs",
        recommendation="May indicate cauda equina syndrome. Seek emergency care immediately.",
        requires_immediate_attention=True,
        medical_consultation_required=True,
    ),
    RedFlag(
        id="bilateral_leg_weakness",
        category=RedFlagCategory.SYMPTOM,
        severity=Severity.CRITICAL,
        title="Bilateral Leg Weakness",
        description="Weakness in both legs, difficulty walking",
        recommendation="Requires immediate neurological evaluation.",
        requires_immediate_attention=True,
        medical_consultation_required=True,
    ),
    RedFlag(
        id="unexplained_weight_loss",
        category=RedFlagCategory.SYMPTOM,
        severity=Severity.HIGH,
        title="Unexplained Weight Loss",
        description="Significant weight loss without trying to lose weight",
        recommendation="May indicate underlying medical condition. Consult physician.",
        requires_immediate_attention=False,
        medical_consultation_required=True,
    ),
    # Duration based
    RedFlag(
        id="worsening_despite_treatment",
        category=RedFlagCategory.DURATION,
        severity=Severity.MEDIUM,
        title="Worsening Despite TMS Treatment",
        description="Symptoms getting worse after 4+ weeks of consistent TMS approach",
        recommendation="Consider medical re-evaluation and alternative approaches.",
        requires_immediate_attention=False,
        medical_consultation_required=True,
    ),
)


def _yes(flag_id: str) -> tuple[RedFlagTrigger, ...]:
    return (RedFlagTrigger(condition="yes", flag_id=flag_id),)


PRE_ASSESSMENT_SCREENING = "pre_assessment_screening"
ONGOING_SYMPTOM_MONITORING = "ongoing_symptom_monitoring"

SAFETY_CHECKS: tuple[SafetyCheck, ...] = (
    SafetyCheck(
        id=PRE_ASSESSMENT_SCREENING,
        type="pre_assessment",
        triggers=("initial_assessment_start",),
        questions=(
            SafetyQuestion(
                id="recent_trauma",
                question=(
                    "Have you experienced any physical trauma, accident, or injury in the "
                    "past 6 months that could be related to your pain?"
                ),
                type="yes_no",
                red_flag_triggers=_yes("trauma_history"),
            ),
            SafetyQuestion(
                id="neurological_symptoms",
                question=(
                    "Are you experiencing any of the following: progressive weakness, "
                    "numbness that is getting worse, loss of coordination, or difficulty "
                    "with balance?"
                ),
                type="yes_no",
                red_flag_triggers=_yes("progressive_neurological"),
            ),
            SafetyQuestion(
                id="bowel_bladder",
                question="Have you experienced any new problems with bowel or bladder control?",
                type="yes_no",
                red_flag_triggers=_yes("bowel_bladder_dysfunction"),
            ),
            SafetyQuestion(
                id="fever_symptoms",
                question="Do you currently have fever, chills, or night sweats along with your pain?",
                type="yes_no",
                red_flag_triggers=_yes("fever_with_pain"),
            ),
            SafetyQuestion(
                id="cancer_history",
                question="Do you have a personal history of cancer?",
                type="yes_no",
                red_flag_triggers=_yes("cancer_history"),
            ),
            SafetyQuestion(
                id="mental_health_screening",
                question=(
                    "In the past two weeks, have you had thoughts of hurting yourself or "
                    "that you would be better off dead?"
                ),
                type="yes_no",
                red_flag_triggers=_yes("suicidal_ideation"),
            ),
        ),
        actions=(
            SafetyAction(
                id="red_flag_medical_referral",
                type="redirect_to_medical",
                priority=Severity.CRITICAL,
                message=(
                    "Based on your responses, we recommend consulting with a healthcare "
                    "provider before proceeding with the TMS approach."
                ),
                action_required=True,
            ),
        ),
    ),
    SafetyCheck(
        id=ONGOING_SYMPTOM_MONITORING,
        type="ongoing_monitoring",
        triggers=("weekly_checkin", "symptom_change_reported"),
        questions=(
            SafetyQuestion(
                id="symptom_progression",
                question="How have your symptoms changed in the past week?",
                type="multiple_choice",
                options=(
                    "Significantly improved",
                    "Somewhat improved",
                    "No change",
                    "Somewhat worse",
                    "Significantly worse",
                ),
                red_flag_triggers=(
                    RedFlagTrigger(
                        condition="Significantly worse", flag_id="worsening_despite_treatment"
                    ),
                ),
            ),
            SafetyQuestion(
                id="new_symptoms",
                question="Have you developed any new symptoms since starting the TMS approach?",
                type="yes_no",
            ),
            SafetyQuestion(
                id="functional_status",
                question="How is your ability to perform daily activities?",
                type="scale",
            ),
        ),
        actions=(
            SafetyAction(
                id="symptom_worsening_warning",
                type="show_warning",
                priority=Severity.MEDIUM,
                message=(
                    "Your symptoms appear to be worsening. "
                    "Consider consulting with a healthcare provider."
                ),
                action_required=False,
            ),
        ),
    ),
)

_DISCLAIMER_DATE = datetime(2024, 1, 1)

DISCLAIMERS: tuple[Disclaimer, ...] = (
    Disclaimer(
        id="general_medical_disclaimer",
        type="medical",
        title="Medical Disclaimer",
        content=(
            "This application is for educational purposes only and is not intended to "
            "provide medical advice, diagnosis, or treatment. The information provided "
            "should not replace professional medical consultation.\n\n"
            "The approach described here is based on the work of Dr. John Sarno and the "
            "concept of Tension Myositis Syndrome (TMS). While many people have found "
            "relief using Dr. Sarno's approach, it is not appropriate for everyone and "
            "should not be used as a substitute for proper medical evaluation.\n\n"
            "You should always consult with a qualified healthcare provider before making "
            "any decisions about your health or treatment. If you are experiencing severe "
            "or worsening symptoms, seek immediate medical attention."
        ),
        requires_acknowledgment=True,
        version="1.0",
        last_updated=_DISCLAIMER_DATE,
        applicable_pages=("all",),
    ),
    Disclaimer(
        id="educational_disclaimer",
        type="educational",
        title="Educational Content Disclaimer",
        content=(
            "The educational content is based on Dr. John Sarno's books and research, as "
            "well as current understanding of mind-body medicine. It is provided for "
            "educational purposes only.\n\n"
            "Individual results may vary. The TMS approach is not scientifically proven to "
            "work for all types of pain, and some conditions require medical treatment."
        ),
        requires_acknowledgment=True,
        version="1.0",
        last_updated=_DISCLAIMER_DATE,
        applicable_pages=("education", "assessment"),
    ),
    Disclaimer(
        id="liability_disclaimer",
        type="liability",
        title="Limitation of Liability",
        content=(
            "The creators and distributors of this application shall not be liable for any "
            "damages arising from the use or inability to use this application or its "
            "content.\n\n"
            "Your use of this application is at your own risk. You are responsible for your "
            "own health decisions and should always consult with qualified healthcare "
            "providers."
        ),
        requires_acknowledgment=True,
        version="1.0",
        last_updated=_DISCLAIMER_DATE,
        applicable_pages=("all",),
    ),
    Disclaimer(
        id="privacy_disclaimer",
        type="privacy",
        title="Privacy and Data Security",
        content=(
            "All personal health information you enter is stored locally on your device "
            "and is not transmitted to external servers.\n\n"
            "No digital system is completely secure. Avoid including highly sensitive "
            "medical information in journal entries, and keep copies of important health "
            "information in secure, offline formats."
        ),
        requires_acknowledgment=True,
        version="1.0",
        last_updated=_DISCLAIMER_DATE,
        applicable_pages=("journal", "pain-tracker", "assessment"),
    ),
)

CLINICAL_GUIDELINES = ClinicalGuidelines(
    eligibility_included=(
        "Chronic back pain without clear structural cause",
        "Neck and shoulder tension",
        "Tension headaches",
        "Fibromyalgia-like symptoms",
        "Repetitive strain injuries",
        "Chronic fatigue syndrome",
        "Irritable bowel syndrome",
        "Chronic pelvic pain",
    ),
    eligibility_excluded=(
        "Acute trauma or injury",
        "Confirmed structural abnormalities requiring treatment",
        "Active infection or inflammation",
        "Cancer-related pain",
        "Autoimmune conditions in active flare",
        "Severe psychiatric conditions requiring immediate treatment",
    ),
    eligibility_requires_clearance=(
        "History of cancer",
        "Previous spinal surgery",
        "Significant trauma history",
        "Neurological symptoms",
        "Chronic medical conditions",
        "Current use of pain medications",
    ),
    red_flag_symptoms=(
        "Progressive neurological deficits",
        "Bowel or bladder dysfunction",
        "Saddle anesthesia",
        "Bilateral leg weakness",
        "Fever with back pain",
        "Severe night pain",
        "Unexplained weight loss",
    ),
    progression_concerns=(
        "Worsening pain after 4 weeks of TMS approach",
        "New neurological symptoms",
        "Functional decline",
        "Inability to perform activities of daily living",
        "Severe sleep disruption",
    ),
    emergency_symptoms=(
        "Cauda equina syndrome signs",
        "Acute neurological changes",
        "Signs of spinal infection",
        "Suicidal ideation",
        "Severe psychiatric symptoms",
    ),
    max_duration_weeks=12,
    required_breaks=(
        "Medical evaluation if no improvement after 4 weeks",
        "Psychiatric consultation if psychological symptoms worsen",
        "Immediate cessation if red flag symptoms develop",
    ),
    contraindicated_conditions=(
        "Active psychosis",
        "Severe untreated depression with suicidal ideation",
        "Active substance abuse",
        "Acute medical conditions requiring immediate treatment",
        "Inability to understand or consent to treatment approach",
    ),
    professional_referral_criteria=(
        "No improvement after 6 weeks of consistent TMS approach",
        "Worsening of symptoms",
        "Development of new symptoms",
        "Psychological distress that interferes with daily functioning",
        "Patient request for professional consultation",
        "Any red flag symptoms or conditions",
    ),
)

# Each clinical emergency symptom and the catalog flag it implies.
EMERGENCY_SYMPTOM_FLAGS: dict[str, str] = {
    "cauda equina syndrome signs": "bowel_bladder_dysfunction",
    "acute neurological changes": "progressive_neurological",
    "signs of spinal infection": "fever_with_pain",
    "suicidal ideation": "suicidal_ideation",
    "severe psychiatric symptoms": "psychosis_symptoms",
}

EMERGENCY_RESOURCES: dict[str, dict] = {
    "crisis": {
        "suicide_prevention_lifeline": {
            "name": "Suicide & Crisis Lifeline",
            "phone": "988",
            "description": "24/7 free and confidential support for people in distress",
        },
        "emergency_services": {
            "name": "Emergency Services",
            "phone": "911",
            "description": "For immediate medical emergencies",
        },
    },
    "medical": {
        "find_a_doctor": "https://www.healthgrades.com",
        "tms_practitioners": "https://www.tmswiki.org/ppd/Find_a_TMS_Doctor",
        "pain_management_specialists": "Contact your primary care physician for referrals",
    },
    "mental_health": {
        "psychology_today": "https://www.psychologytoday.com",
        "nami": "https://www.nami.org",
        "samhsa": "https://www.samhsa.gov/find-help/national-helpline",
    },
}


def find_red_flag(flag_id: str, catalog: tuple[RedFlag, ...] = RED_FLAGS) -> RedFlag | None:
    return next((f for f in catalog if f.id == flag_id), None)
