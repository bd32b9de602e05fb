"""
Course recommendation and syllabus generation through the OpenAI client
against any compatible chat-completions endpoint.

The payloads are opaque to the rest of the system: they are stored and shown,
never interpreted. When no API key is configured, or the call fails in any
way, a deterministic fallback payload is returned instead.
"""
import json
import logging
from typing import Any

import httpx
import openai
from openai import OpenAI

from campus.core import config

logger = logging.getLogger(__name__)

RECOMMENDER_SYSTEM_PROMPT = (
    "You are an academic advisor helping students choose appropriate courses. "
    "Provide practical, relevant course recommendations based on their interests and academic level."
)

SYLLABUS_SYSTEM_PROMPT = (
    "You are an experienced university professor creating detailed course syllabi. "
    "Ensure academic rigor and practical learning outcomes."
)


class AIServiceError(Exception):
    pass


def fallback_recommendations() -> dict[str, Any]:
    return {
        "recommendations": [
            {
                "title": "Introduction to Computer Science",
                "code": "CS101",
                "description": "Fundamental concepts of programming and computational thinking",
                "credits": 3,
                "matchPercentage": 85,
                "reasoning": "Great foundation course for technical interests",
            },
            {
                "title": "Data Structures and Algorithms",
                "code": "CS201",
                "description": "Essential data structures and algorithmic problem solving",
                "credits": 4,
                "matchPercentage": 90,
                "reasoning": "Builds on programming fundamentals with practical applications",
            },
        ]
    }


def fallback_syllabus(course_title: str, course_description: str, duration: int, credits: int) -> dict[str, Any]:
    weekly = []
    for i in range(duration):
        week = {
            "week": i + 1,
            "topic": f"Week {i + 1}: Introduction to Course Topic {i + 1}",
            "activities": ["Lecture", "Discussion", "Lab Work"],
        }
        if i % 4 == 3:
            week["assignments"] = "Assignment due"
        weekly.append(week)

    return {
        "syllabus": {
            "courseInfo": {
                "title": course_title,
                "description": course_description,
                "credits": credits,
                "duration": f"{duration} weeks",
            },
            "learningObjectives": [
                "Understand fundamental concepts",
                "Apply theoretical knowledge to practical problems",
                "Develop critical thinking skills",
                "Demonstrate proficiency in course materials",
            ],
            "weeklySchedule": weekly,
            "assessments": [
                {"type": "Assignments", "weight": 40, "description": "Regular homework and projects"},
                {"type": "Midterm Exam", "weight": 25, "description": "Comprehensive midterm examination"},
                {"type": "Final Exam", "weight": 35, "description": "Cumulative final examination"},
            ],
            "resources": [
                "Course textbook (TBD)",
                "Online learning platform",
                "Supplementary readings",
            ],
            "policies": [
                "Regular attendance is expected",
                "Late submissions will be penalized",
                "Academic integrity must be maintained",
                "Office hours available by appointment",
            ],
        }
    }


class AIClient:
    def __init__(
        self,
        api_key: str | None = config.OPENAI_API_KEY,
        base_url: str = config.OPENAI_BASE_URL,
        model: str = config.AI_MODEL,
        timeout: float = config.AI_TIMEOUT_SECONDS,
        max_retries: int = config.AI_MAX_RETRIES,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self._client: OpenAI | None = None
        if api_key:
            http_client = httpx.Client(transport=transport, timeout=timeout) if transport else None
            self._client = OpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=max_retries,
                http_client=http_client,
            )

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def _complete_json(self, system: str, prompt: str, max_tokens: int) -> dict[str, Any]:
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                max_tokens=max_tokens,
            )
            content = completion.choices[0].message.content
            result = json.loads(content or "{}")
        except (openai.OpenAIError, IndexError, AttributeError, TypeError, ValueError) as exc:
            raise AIServiceError(str(exc)) from exc
        if not isinstance(result, dict):
            raise AIServiceError("AI response is not a JSON object")
        return result

    def recommend_courses(self, interests: str, level: str = "any",
                          existing_courses: list[str] | None = None) -> dict[str, Any]:
        existing = ", ".join(existing_courses or []) or "None"
        prompt = (
            "Based on the following academic interests and preferences, recommend 3-5 relevant university courses:\n\n"
            f"Academic Interests: {interests}\n"
            f"Preferred Level: {level}\n"
            f"Already Enrolled: {existing}\n\n"
            'Respond in JSON as {"recommendations": [{"title", "code", "description", "credits", '
            '"matchPercentage", "reasoning"}]}. Avoid duplicating existing enrollments.'
        )
        if not self.enabled:
            return fallback_recommendations()
        try:
            result = self._complete_json(RECOMMENDER_SYSTEM_PROMPT, prompt, max_tokens=1000)
        except AIServiceError as exc:
            logger.warning("AI recommendation failed, using fallback: %s", exc)
            return fallback_recommendations()
        result.setdefault("recommendations", [])
        return result

    def generate_syllabus(self, course_title: str, course_description: str,
                          duration: int, credits: int) -> dict[str, Any]:
        prompt = (
            "Create a comprehensive university course syllabus for:\n\n"
            f"Course Title: {course_title}\n"
            f"Course Description: {course_description}\n"
            f"Duration: {duration} weeks\n"
            f"Credits: {credits}\n\n"
            'Respond in JSON as {"syllabus": {"courseInfo", "learningObjectives", "weeklySchedule": '
            '[{"week", "topic", "activities", "assignments"}], "assessments", "resources", "policies"}}.'
        )
        if not self.enabled:
            return fallback_syllabus(course_title, course_description, duration, credits)
        try:
            result = self._complete_json(SYLLABUS_SYSTEM_PROMPT, prompt, max_tokens=2000)
        except AIServiceError as exc:
            logger.warning("AI syllabus generation failed, using fallback: %s", exc)
            return fallback_syllabus(course_title, course_description, duration, credits)
        result.setdefault("syllabus", {})
        return result
