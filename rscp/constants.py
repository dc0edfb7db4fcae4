"""
RSCP Protocol Constants

The field allowlist and denylist are compiled in. Changing either is a
protocol version change, not a configuration change.
"""

PROTOCOL_VERSION = "1.0"

# The registry schema has exactly these five columns.
ALLOWED_PUBLIC_FIELDS = (
    "givenName",
    "familyName",
    "level",
    "validFrom",
    "validUntil",
)

FORBIDDEN_FIELDS = (
    # Personal identifiers
    "email",
    "phone",
    "mobile",
    "address",
    "dateOfBirth",
    "dob",
    "birthDate",
    "gender",
    "sex",
    "age",

    # Government IDs
    "aadhaarNumber",
    "aadhaar",
    "panNumber",
    "pan",
    "passport",
    "passportNumber",
    "drivingLicense",
    "licenseNumber",
    "socialSecurityNumber",
    "ssn",
    "nationalId",
    "voterId",

    # Assessment data
    "testScore",
    "score",
    "hazardScore",
    "practicalScore",
    "theoryScore",
    "grade",
    "marks",

    # Financial data
    "bankAccount",
    "accountNumber",
    "ifsc",
    "upi",
    "creditCard",
    "salary",
    "income",

    # Internal identifiers
    "internalRiderId",
    "riderId",
    "internalId",
    "externalId",
    "employeeId",
    "staffId",

    # Location data
    "location",
    "gps",
    "coordinates",
    "homeAddress",
    "workAddress",

    # Biometric data
    "photo",
    "photograph",
    "fingerprint",
    "biometric",
    "faceId",
)

# Containers scanned one level deep by the forbidden-field detector.
NESTED_ATTRIBUTE_CONTAINERS = ("publicAttributes", "attributes")

REDACTED_MARKER = "[REDACTED - FORBIDDEN FIELD]"
LOG_VALUE_MAX_LENGTH = 50

DEFAULT_VERIFY_BASE_URL = "https://rscp.org"
