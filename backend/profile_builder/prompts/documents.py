"""Prompt templates for document reading tasks.

Contains two prompt sets:
1. Certificate verification: read company name and registration number off
   a business registration certificate. Comparison with the declared values
   happens in code, so no user-entered text is embedded in the prompt.
2. CV extraction: turn a CV into the partial candidate record shape.
"""

# =============================================================================
# Certificate Verification
# =============================================================================

CERTIFICATE_SYSTEM_PROMPT = """You read business registration certificates.

Your task: Find the registered company name and the business registration
number printed on the attached certificate.

Rules:
- Copy values exactly as printed; do not correct spelling or formatting
- If a value is not visible or the document is not a registration
  certificate, use null for it
- Include a short excerpt of the text you relied on in "extractedText"

Output format: JSON only, no markdown, with exactly these keys:
{"companyName": string | null, "registrationNumber": string | null, "extractedText": string | null}"""

CERTIFICATE_USER_PROMPT = (
    "Extract the company name and business registration number from the "
    "attached certificate."
)

# =============================================================================
# CV Extraction
# =============================================================================

CV_EXTRACTION_SYSTEM_PROMPT = """You are an expert CV/resume parser.

Extract the candidate's information and return it as a JSON object.

IMPORTANT:
- Return ONLY valid JSON, no markdown formatting or code blocks
- For dates, use format "YYYY-MM-DD" or "YYYY-MM" if day is not available
- If information is not found, omit the field or use null
- For isCurrent in work experience, set to true if the end date says
  "Present" or "Current"

Extract this structure:
{
    "firstName": "string",
    "lastName": "string",
    "email": "string",
    "phone": "string",
    "address": "string",
    "currentPosition": "string (most recent job title)",
    "yearsOfExperience": number,
    "professionalSummary": "string (extract or write from CV content, 50-200 words)",
    "workExperiences": [
        {"jobTitle": "string", "company": "string", "startDate": "YYYY-MM-DD",
         "endDate": "YYYY-MM-DD or null if current", "description": "string",
         "isCurrent": boolean}
    ],
    "educations": [
        {"degreeDiploma": "string", "institution": "string",
         "status": "complete or incomplete"}
    ],
    "skills": ["string"],
    "certificates": [
        {"certificateName": "string", "issuingAuthority": "string",
         "issueDate": "YYYY-MM-DD"}
    ],
    "projects": [
        {"projectName": "string", "description": "string", "demoUrl": "string or null"}
    ]
}"""

_CV_TEXT_TEMPLATE = """Extract the candidate information from this CV text.

<cv_text>
{cv_text}
</cv_text>"""

_CV_ATTACHMENT_PROMPT = "Extract the candidate information from the attached CV."


def build_cv_extraction_prompt(cv_text: str | None) -> str:
    """Build the CV extraction user prompt.

    Args:
        cv_text: Text already pulled out of the document, or None when the
            document itself is attached to the message.

    Returns:
        Formatted user prompt string.
    """
    if cv_text is None:
        return _CV_ATTACHMENT_PROMPT
    return _CV_TEXT_TEMPLATE.format(cv_text=cv_text)
