"""
Prompt builders for the generation endpoints.

Instructions are deliberately short; each builder only stitches the request
fields into a prompt the provider can act on.
"""
from __future__ import annotations

import json
from typing import Any

JSON_ONLY_INSTRUCTIONS = (
    "IMPORTANT INSTRUCTIONS:\n"
    "- You MUST respond with ONLY a valid JSON object\n"
    "- Do NOT include any text or explanations outside the JSON\n"
    "- Ensure all JSON is valid and parseable"
)

KEYWORDS_SYSTEM_PROMPT = (
    "You are an ATS keyword analyst. Compare the job description with the "
    "candidate's current skills and list the keywords the candidate should add."
)
KEYWORDS_RESPONSE_FORMAT = (
    '{"matchedSkills": ["..."], "missingSkills": ["..."], "keywords": ["..."]}'
)

COVER_LETTER_SYSTEM_PROMPT = (
    "You are a career coach. Write a concise, specific cover letter for the "
    "job description using only facts from the candidate's resume."
)
COVER_LETTER_RESPONSE_FORMAT = '{"coverLetter": "..."}'

EXPERIENCE_SYSTEM_PROMPT = (
    "You are a resume writer. Rewrite the candidate's experience bullets so "
    "they match the job description without inventing facts."
)
EXPERIENCE_RESPONSE_FORMAT = (
    '{"experience": [{"title": "...", "company": "...", "bullets": ["..."]}]}'
)

CHAT_SYSTEM_PROMPT = (
    "You are a job application assistant. Answer the user's question about "
    "this job using the candidate's resume. Reply in plain text."
)


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)


def build_keywords_prompt(job_description: str, skills: Any) -> str:
    return (
        f"{KEYWORDS_SYSTEM_PROMPT}\n\n"
        f"Job Description:\n{job_description}\n\n"
        f"Current Skills:\n{json.dumps(skills, ensure_ascii=False)}\n\n"
        f"{JSON_ONLY_INSTRUCTIONS}\n\n"
        f"Response Format:{KEYWORDS_RESPONSE_FORMAT}"
    )


def build_cover_letter_prompt(job_description: str, resume: Any) -> str:
    return (
        f"{COVER_LETTER_SYSTEM_PROMPT}\n\n"
        f"Job Description:\n{job_description}\n\n"
        f"Resume:\n{_as_text(resume)}\n\n"
        f"Response Format:{COVER_LETTER_RESPONSE_FORMAT}"
    )


def build_experience_prompt(job_description: str, experience: Any) -> str:
    return (
        f"{EXPERIENCE_SYSTEM_PROMPT}\n\n"
        f"Job Description:\n{job_description}\n\n"
        f"Experience:\n{_as_text(experience)}\n\n"
        f"Response Format:{EXPERIENCE_RESPONSE_FORMAT}"
    )


def build_chat_prompt(job_description: str, resume: Any, question: str) -> str:
    return (
        f"{CHAT_SYSTEM_PROMPT}\n\n"
        f"Job Description:\n{job_description}\n\n"
        f"Candidate Resume (JSON):\n{_as_text(resume)}\n\n"
        f"User Question:\n{question}"
    )
