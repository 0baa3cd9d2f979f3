"""Static lexicons used by feature extraction.

All entries are in normalized form (upper-case, no punctuation, `&` spelled `AND`).
Multi-word entries are matched as whole-token phrases.
"""

from __future__ import annotations

import re

# Legal-form and institutional suffixes
BUSINESS_SUFFIXES = frozenset(
    {
        "INC",
        "INCORPORATED",
        "LLC",
        "L L C",
        "LTD",
        "LIMITED",
        "CORP",
        "CORPORATION",
        "CO",
        "COMPANY",
        "LLP",
        "LP",
        "PC",
        "PLLC",
        "PA",
        "PLC",
        "GMBH",
        "AG",
        "SA",
        "SARL",
        "SRL",
        "BV",
        "NV",
        "PTY",
        "BANK",
        "TRUST",
        "FOUNDATION",
        "UNIVERSITY",
        "HOSPITAL",
        "INSTITUTE",
        "GROUP",
        "ASSOCIATES",
        "ASSOCIATION",
        "PARTNERS",
        "PARTNERSHIP",
        "ENTERPRISES",
        "HOLDINGS",
        "PROPERTIES",
        "SOCIETY",
        "FUND",
        "AGENCY",
        "DEPARTMENT",
        "AUTHORITY",
        "DISTRICT",
        "DIVISION",
        "PROFESSIONAL CORPORATION",
    }
)

HONORIFICS = frozenset(
    {
        "MR",
        "MRS",
        "MS",
        "MISS",
        "MX",
        "DR",
        "PROF",
        "REV",
        "SIR",
        "DAME",
        "LADY",
        "LORD",
        "HON",
        "CAPT",
        "COL",
        "SGT",
    }
)

GENERATION_SUFFIXES = frozenset({"JR", "SR", "II", "III", "IV", "V", "2ND", "3RD", "4TH"})

BUSINESS_KEYWORDS = frozenset(
    {
        # Core business terms
        "SERVICES",
        "SERVICE",
        "SOLUTIONS",
        "SYSTEMS",
        "TECHNOLOGIES",
        "TECHNOLOGY",
        "COMMUNICATIONS",
        "RESOURCES",
        "DEVELOPMENT",
        "MANAGEMENT",
        "CONSULTING",
        "CONSULTANTS",
        "CONSTRUCTION",
        "CONTRACTORS",
        "CONTRACTING",
        "ENTERPRISES",
        "INDUSTRIES",
        "INTERNATIONAL",
        "GLOBAL",
        "NATIONAL",
        "AMERICAN",
        "INVESTMENTS",
        "CAPITAL",
        "FINANCIAL",
        "INSURANCE",
        "VENTURES",
        "LOGISTICS",
        "TRANSPORT",
        "TRANSPORTATION",
        "TRUCKING",
        "FREIGHT",
        "SHIPPING",
        "STAFFING",
        "MARKETING",
        "MEDIA",
        "PRINTING",
        "DESIGN",
        "STUDIO",
        "LABS",
        "SOFTWARE",
        "DIGITAL",
        "NETWORKS",
        "ENGINEERING",
        "ENERGY",
        "UTILITIES",
        "POWER",
        "WATER",
        "GAS",
        "ELECTRIC",
        "MOTORS",
        "AUTO",
        "AUTOMOTIVE",
        "TRAVEL",
        # Trades
        "PLUMBING",
        "HEATING",
        "COOLING",
        "ELECTRICAL",
        "LANDSCAPING",
        "LANDSCAPE",
        "LAWN",
        "TREE",
        "CLEANING",
        "JANITORIAL",
        "MAINTENANCE",
        "SECURITY",
        "PROTECTION",
        "FIRE",
        "ALARM",
        "ROOFING",
        "FLOORING",
        "PAINTING",
        "CARPET",
        "GLASS",
        "SUPPLY",
        "SUPPLIES",
        "DISTRIBUTION",
        "DISTRIBUTORS",
        "WHOLESALE",
        "RETAIL",
        "MANUFACTURING",
        "REPAIR",
        "RESTORATION",
        "RENOVATION",
        "REMODELING",
        "APPLIANCE",
        "ELEVATOR",
        "WASTE",
        "DISPOSAL",
        "RECYCLING",
        "PEST",
        "CONTROL",
        "POOL",
        "SPA",
        "DOOR",
        "WINDOW",
        "LOCKSMITH",
        "MECHANICAL",
        "HVAC",
        "AIR CONDITIONING",
        "INSPECTION",
        "TESTING",
        "EQUIPMENT",
        "RENTAL",
        "RENTALS",
        "CATERING",
        "RESTAURANT",
        "CAFE",
        "BAKERY",
        "MARKET",
        "PHARMACY",
        "CLINIC",
        "DENTAL",
        "MEDICAL",
        "HEALTH",
        "HEALTHCARE",
        # Government and institutional
        "CITY",
        "COUNTY",
        "STATE",
        "GOVERNMENT",
        "MUNICIPAL",
        "FEDERAL",
        "BUREAU",
        "COMMISSION",
        "BOARD",
        "OFFICE",
        "ADMINISTRATION",
        "TREASURER",
        "SCHOOL",
        "SCHOOLS",
        "COLLEGE",
        "ACADEMY",
        "CHURCH",
        "MINISTRIES",
        "COUNCIL",
        "COMMITTEE",
        # Property
        "APARTMENTS",
        "APARTMENT",
        "PROPERTY",
        "REALTY",
        "REAL ESTATE",
        "HOUSING",
        "RESIDENTIAL",
        "COMMERCIAL",
        "LEASING",
        "TOWERS",
        "VILLAS",
        "COMMONS",
    }
)

# Common given names, including frequent short forms
FIRST_NAMES = frozenset(
    {
        "AARON", "ADAM", "ALAN", "ALBERT", "ALEX", "ALEXANDER", "ALICE", "ALLEN", "AMANDA",
        "AMY", "ANA", "ANDREA", "ANDREW", "ANGELA", "ANN", "ANNA", "ANNE", "ANTHONY",
        "ANTONIO", "ARTHUR", "ASHLEY", "BARBARA", "BEN", "BENJAMIN", "BETH", "BETTY",
        "BILL", "BOB", "BRANDON", "BRENDA", "BRIAN", "BRUCE", "CAROL", "CAROLYN", "CARLOS",
        "CARMEN", "CATHERINE", "CHARLES", "CHERYL", "CHRIS", "CHRISTINA", "CHRISTINE",
        "CHRISTOPHER", "CYNTHIA", "DANIEL", "DANIELLE", "DAVE", "DAVID", "DAWN", "DEBORAH",
        "DEBRA", "DENISE", "DENNIS", "DIANA", "DIANE", "DOLORES", "DONALD", "DONNA",
        "DOROTHY", "DOUGLAS", "EDWARD", "ELIZABETH", "EMILY", "EMMA", "ERIC", "EUGENE",
        "EVELYN", "FRANCES", "FRANCISCO", "FRANK", "GARY", "GEORGE", "GERALD", "GLORIA",
        "GRACE", "GREGORY", "HAROLD", "HEATHER", "HELEN", "HENRY", "ISABEL", "JACK",
        "JACOB", "JACQUELINE", "JAMES", "JANE", "JANET", "JANICE", "JASON", "JEAN",
        "JEFF", "JEFFREY", "JENNIFER", "JEREMY", "JERRY", "JESSICA", "JIM", "JOAN", "JOE",
        "JOHN", "JONATHAN", "JORGE", "JOSE", "JOSEPH", "JOSHUA", "JOYCE", "JUAN", "JUDITH",
        "JUDY", "JULIA", "JULIE", "JUSTIN", "KAREN", "KATE", "KATHERINE", "KATHLEEN",
        "KATHRYN", "KAYLA", "KEITH", "KELLY", "KENNETH", "KEVIN", "KIMBERLY", "KYLE",
        "LARRY", "LAURA", "LAUREN", "LAWRENCE", "LINDA", "LISA", "LORI", "LOUIS", "LUIS",
        "LYNN", "MANUEL", "MARGARET", "MARIA", "MARIE", "MARILYN", "MARK", "MARTHA",
        "MARY", "MATT", "MATTHEW", "MEGAN", "MELISSA", "MICHAEL", "MICHELLE", "MIGUEL",
        "MIKE", "NANCY", "NATHAN", "NICHOLAS", "NICOLE", "OLIVIA", "PAMELA", "PATRICIA",
        "PATRICK", "PAUL", "PEDRO", "PETER", "PHILIP", "PILAR", "RACHEL", "RALPH",
        "RAYMOND", "REBECCA", "RICHARD", "RICK", "ROBERT", "ROGER", "RONALD", "ROSA",
        "ROSE", "RUSSELL", "RUTH", "RYAN", "SAMANTHA", "SAMUEL", "SANDRA", "SARA",
        "SARAH", "SCOTT", "SEAN", "SHARON", "SHIRLEY", "SOPHIA", "STEPHANIE", "STEPHEN",
        "STEVE", "STEVEN", "SUE", "SUSAN", "TERESA", "TERRY", "THERESA", "THOMAS",
        "TIM", "TIMOTHY", "TOM", "TYLER", "VICTORIA", "VINCENT", "VIRGINIA", "WALTER",
        "WAYNE", "WILLIAM", "ZACHARY",
    }
)

# A bare nine-digit run, or digits grouped as an EIN (2-7) or SSN (3-2-4)
TAX_ID_RE = re.compile(r"\b\d{9}\b|\b\d{2} \d{7}\b|\b\d{3} \d{2} \d{4}\b")
