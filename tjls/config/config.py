"""
Static configuration data for the TaskJuggler language tools.
This includes keyword families, identifier rules, per-block attribute
tables and workspace scanning defaults. Loaded once per process.
"""

import re

DIAGNOSTIC_SOURCE = "taskjuggler"

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
VALID_IDENTIFIER_REGEX = re.compile(rf"^{IDENTIFIER}$")

# Kinds that can be renamed and that carry references.
REFERENCE_KINDS = ("task", "resource", "account")

REPORT_KEYWORDS = (
    "taskreport",
    "resourcereport",
    "accountreport",
    "textreport",
    "timesheetreport",
    "statussheetreport",
    "tracereport",
    "icalreport",
    "nikureport",
    "xmlreport",
    "export",
)

DATE_ATTRIBUTES = ("start", "end", "minstart", "maxstart", "minend", "maxend")

# keyword -> (kind, context)
REFERENCE_LIST_KEYWORDS = {
    "depends": ("task", "depends"),
    "precedes": ("task", "precedes"),
    "follows": ("task", "follows"),
    "allocate": ("resource", "allocate"),
    "responsible": ("resource", "responsible"),
    "shifts": ("resource", "shifts"),
}

# Second word of a 'charge' statement that selects the charge mode, not an account.
CHARGE_MODES = {"onstart", "onend", "perhour", "perday", "perweek"}

TASK_ATTRIBUTES = [
    "account",
    "allocate",
    "booking",
    "charge",
    "chargeset",
    "complete",
    "depends",
    "duration",
    "effort",
    "end",
    "flags",
    "journalentry",
    "length",
    "limits",
    "maxend",
    "maxstart",
    "milestone",
    "minend",
    "minstart",
    "note",
    "period",
    "precedes",
    "priority",
    "projectid",
    "purge",
    "responsible",
    "scheduled",
    "scheduling",
    "shifts",
    "start",
    "supplement",
    "task",
]

RESOURCE_ATTRIBUTES = [
    "booking",
    "chargeset",
    "efficiency",
    "email",
    "flags",
    "journalentry",
    "leaveallowance",
    "leaves",
    "limits",
    "managers",
    "purge",
    "rate",
    "resource",
    "shifts",
    "supplement",
    "vacation",
    "workinghours",
]

PROJECT_ATTRIBUTES = [
    "alertlevels",
    "currency",
    "currencyformat",
    "dailyworkinghours",
    "extend",
    "include",
    "journalentry",
    "now",
    "numberformat",
    "outputdir",
    "scenario",
    "shorttimeformat",
    "timeformat",
    "timezone",
    "timingresolution",
    "trackingscenario",
    "weekstartsmonday",
    "weekstartssunday",
    "workinghours",
    "yearlyworkingdays",
]

ACCOUNT_ATTRIBUTES = ["account", "aggregate", "credits", "flags"]

REPORT_ATTRIBUTES = [
    "balance",
    "caption",
    "center",
    "columns",
    "end",
    "epilog",
    "flags",
    "footer",
    "formats",
    "header",
    "headline",
    "hidejournalentry",
    "hideresource",
    "hidetask",
    "left",
    "loadunit",
    "opennodes",
    "period",
    "prolog",
    "purge",
    "right",
    "rollupresource",
    "rolluptask",
    "scenarios",
    "sortresources",
    "sorttasks",
    "start",
    "timeformat",
    "title",
]

TOP_LEVEL_KEYWORDS = [
    "account",
    "include",
    "macro",
    "project",
    "resource",
    "shift",
    "supplement",
    "task",
    *REPORT_KEYWORDS,
]

BLOCK_ATTRIBUTES = {
    "task": TASK_ATTRIBUTES,
    "resource": RESOURCE_ATTRIBUTES,
    "project": PROJECT_ATTRIBUTES,
    "account": ACCOUNT_ATTRIBUTES,
    "report": REPORT_ATTRIBUTES,
}

# Words that never name an account when they follow 'purge' or 'charge'.
RESERVED_KEYWORDS = (
    set(TASK_ATTRIBUTES)
    | set(RESOURCE_ATTRIBUTES)
    | set(PROJECT_ATTRIBUTES)
    | set(ACCOUNT_ATTRIBUTES)
    | set(REPORT_ATTRIBUTES)
    | CHARGE_MODES
)

WORKSPACE_FILE_PATTERNS = ("*.tjp", "*.tji")
WORKSPACE_EXCLUDE_DIRS = {"node_modules", ".git", ".hg", ".svn", "__pycache__", ".venv", "venv"}
