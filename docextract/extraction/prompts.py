"""Prompts for the AI text parser.

Each prompt embeds the raw OCR text and asks for a minimal JSON object
with a fixed set of keys. Values the model cannot read must be null.
"""

SYSTEM_PROMPT = "You are a strict document analyzer. Always return clean JSON only."

_TEXT_MARKER = "%%OCR_TEXT%%"

IDENTITY_PROMPT = """You are extracting information from an Indian Aadhaar card OCR text.

Text from Aadhaar card:
%%OCR_TEXT%%

EXTRACTION RULES:

1. ID NUMBER:
   - 12-digit number, may have spaces like "8539 4858 7776"
   - Remove spaces when returning

2. NAME:
   - The person's name in ENGLISH (not Hindi script)
   - It usually appears after Hindi text or on its own line above the date of birth
   - Random letters like "ZN" or "XY" are OCR noise, not names
   - A valid name has vowels and at least 3 characters

3. DATE OF BIRTH:
   - Follows "DOB:" or "जन्म तिथि/DOB:"
   - Format DD/MM/YYYY, e.g. "07/07/2008"

4. GENDER:
   - "MALE", "FEMALE", "पुरुष/MALE" or "महिला/FEMALE"

Return ONLY this JSON object (no explanation):
{
  "id_number": "853948587776",
  "name": "Siddharth",
  "date_of_birth": "07/07/2008",
  "gender": "Male"
}

IMPORTANT: Use null for fields you cannot clearly identify. Do NOT guess or make up values.
"""

REPORT_PROMPT = """You are extracting information from a medical blood group test report.

Text from blood report:
%%OCR_TEXT%%

EXTRACTION RULES:

1. BLOOD GROUP (MOST IMPORTANT):
   - Look for "Final Blood Group" followed by A+, A-, B+, B-, O+, O-, AB+, AB-
   - OR combine "ABO Blood Group: A/B/O/AB" with "Rh (D) Factor: Positive/Negative"
   - Example: ABO=A and Rh=Positive gives A+

2. PATIENT NAME:
   - "Name | Akshat Kumar" or "Name: Akshat Kumar"; "|" is a table separator

3. AGE:
   - "Age | 21 Years" or "Age: 21"; return only the number

4. GENDER:
   - "Gender | Male" or "Gender: Female"

5. TEST DATE:
   - Report, sample or collection date in DD/MM/YYYY format

Return ONLY this JSON object (no other text):
{
  "blood_group": "A+",
  "patient_name": "Akshat Kumar",
  "age": 21,
  "gender": "Male",
  "test_date": "12/04/2024"
}

IMPORTANT: Use null for fields you cannot clearly identify. Do NOT guess or make up values.
"""

BLOOD_GROUP_PROMPT = """Extract only the blood group from the text below.

Text:
%%OCR_TEXT%%

Return a JSON object {"blood_group": X} where X is exactly one of
A+, A-, B+, B-, O+, O-, AB+, AB-, or "NOT_FOUND" if no blood group is present.
"""


def render(template: str, ocr_text: str) -> str:
    """Insert OCR text into a prompt template."""
    return template.replace(_TEXT_MARKER, ocr_text.strip())
