"""Static catalogue of record categories (modules) and their field schemas."""

from careops.domain.entities import ModuleDescriptor, ModuleGroup

MODULES: tuple[ModuleDescriptor, ...] = (
    ModuleDescriptor("dashboard", "COMMAND CENTER", ModuleGroup.SYSTEM),

    # CLINICAL
    ModuleDescriptor(
        "clients",
        "CLIENT CENSUS",
        ModuleGroup.CLINICAL,
        ("Name", "Medicaid_ID", "Care_Level", "Diagnosis", "Auth_Units_Total", "Auth_Units_Remaining", "Status"),
    ),
    ModuleDescriptor(
        "assessments",
        "NURSE ASSESSMENTS",
        ModuleGroup.CLINICAL,
        ("Client", "Nurse", "Assessment_Type", "Risk_Score", "Notes", "Status"),
    ),
    ModuleDescriptor(
        "care_plans",
        "CARE PLANS",
        ModuleGroup.CLINICAL,
        ("Client", "Primary_Goal", "Interventions", "Review_Date", "Status"),
    ),
    ModuleDescriptor("vitals", "VITALS LOG", ModuleGroup.CLINICAL, ("Client", "BP", "HR", "Temp", "O2", "Notes")),
    ModuleDescriptor(
        "referral_portal",
        "REFERRALS",
        ModuleGroup.CLINICAL,
        ("Referrer", "Patient", "Insurance", "Status", "Notes"),
    ),

    # HR
    ModuleDescriptor("staff", "CAREGIVER FLEET", ModuleGroup.HR, ("Name", "Role", "Phone", "License_Exp", "Status")),
    ModuleDescriptor("attendance", "ATTENDANCE", ModuleGroup.HR, ("Staff", "Type", "Reason", "Note", "Date")),
    ModuleDescriptor("training", "LMS ACADEMY", ModuleGroup.HR, ("Staff", "Course", "Completion", "Expiry")),
    ModuleDescriptor("applicants", "HIRING PIPELINE", ModuleGroup.HR, ("Name", "Role", "Stage", "Interview_Date")),

    # LOGISTICS
    ModuleDescriptor("evv", "EVV TRACKING", ModuleGroup.LOGISTICS, ("Visit_ID", "Staff", "Client", "GPS_Coords", "Status")),
    ModuleDescriptor("scheduling", "MASTER MATRIX", ModuleGroup.LOGISTICS, ("Client", "Staff", "Shift_Day", "Time_Slot", "Notes")),
    ModuleDescriptor("timeclock", "TIMECLOCK", ModuleGroup.LOGISTICS, ("Staff", "Action", "Location", "Time")),

    # FINANCE
    ModuleDescriptor(
        "billing",
        "REVENUE CYCLE",
        ModuleGroup.FINANCE,
        ("Claim_ID", "Payer", "Amount", "Status", "Service_Date", "Notes"),
    ),
    ModuleDescriptor("payroll", "PAYROLL", ModuleGroup.FINANCE, ("Staff", "Hours_Reg", "Hours_OT", "Total_Pay", "Status")),

    # PORTALS / SYSTEM
    ModuleDescriptor(
        "family_portal",
        "FAMILY PORTAL",
        ModuleGroup.PORTALS,
        ("Family_User", "Client_Link", "Access_Level", "Status"),
    ),
    ModuleDescriptor("broadcast", "ALERTS", ModuleGroup.SYSTEM, ("Message", "Audience", "Severity")),
    ModuleDescriptor("settings", "CONFIG", ModuleGroup.SYSTEM, ("Setting", "Value")),
)

DEFAULT_MODULE = MODULES[0]

_BY_ID: dict[str, ModuleDescriptor] = {m.id: m for m in MODULES}

# Modules backed by a collection of the same name; the dashboard has none.
CATEGORIES: tuple[str, ...] = tuple(m.id for m in MODULES if m.fields)


def get_module(module_id: str | None) -> ModuleDescriptor:
    """Look up a module, falling back to the default for unknown or stale ids."""
    return _BY_ID.get(module_id or "", DEFAULT_MODULE)


def is_category(module_id: str | None) -> bool:
    return module_id in CATEGORIES


def modules_in_group(group: ModuleGroup) -> list[ModuleDescriptor]:
    return [m for m in MODULES if m.group == group]


def field_label(field_name: str) -> str:
    """Human-readable label for a schema field (``Auth_Units_Total`` → ``Auth Units Total``)."""
    return field_name.replace("_", " ")
