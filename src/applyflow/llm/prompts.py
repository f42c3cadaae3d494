from __future__ import annotations

FIND_CONTACTS_PROMPT = """
You are a recruiting research assistant. Identify likely recruiter or hiring manager
contacts for this job posting.

Job details:
- Title: {title}
- Company: {company}
- Location: {location}

List 2-3 likely contacts (recruiters, HR or hiring managers). For each, infer an email
from common corporate patterns (firstname.lastname@company.com, first@company.com, ...)
and give a confidence score from 0 to 100.

Return strict JSON:
{{
  "contacts": [
    {{
      "name": "Full Name",
      "title": "Job Title",
      "email": "email@company.com",
      "emailPattern": "firstname.lastname",
      "confidenceScore": 75,
      "linkedinUrl": "https://linkedin.com/in/username"
    }}
  ]
}}
""".strip()

COLD_EMAIL_PROMPT = """
You write a concise cold outreach email for a job application.

Job:
- Role: {title}
- Company: {company}
- Description: {description}

Candidate resume summary:
{resume_text}

Recipient: {contact_name}

The email is professional but friendly, references the role, highlights 2-3 relevant
qualifications, ends with a clear call to action and stays under 200 words.

Return strict JSON:
{{
  "subject": "Email subject line",
  "body": "Email body with \\n for new lines",
  "contactEmail": ""
}}
""".strip()

FOLLOW_UP_PROMPT = """
You write a brief follow-up email for a job application.

Context:
- Applied for: {title} at {company}
- Originally sent: {sent_date}

The email references the original application, reaffirms interest, asks about the
timeline and stays under 100 words.

Return strict JSON:
{{
  "subject": "Follow-up subject line",
  "body": "Email body with \\n for new lines"
}}
""".strip()

SCORE_RESUME_PROMPT = """
You are an applicant tracking system expert. Analyse how well the resume matches the
job description.

Job description:
{job_description}

Resume:
{resume_text}

Return strict JSON:
{{
  "overallScore": 75,
  "matchedSkills": ["skill1", "skill2"],
  "missingSkills": ["skill3", "skill4"],
  "recommendation": "Brief recommendation for improving the application"
}}
""".strip()
