"""
Teacher — the educational assistant. Tutorials, quizzes, learning paths,
explanations, and per-user progress tracking.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional

from agents.base import BaseAgent, register_agent_class
from config import TTL_ONE_DAY, TTL_ONE_WEEK, TTL_THIRTY_DAYS

logger = logging.getLogger(__name__)

SECTION_WEIGHT = 0.6
QUIZ_WEIGHT = 0.4
SECTION_PERCENT = 25  # tutorials have four sections

_POINTS = {"easy": 10, "medium": 20, "hard": 30}

_DEFINITIONS = {
    "eli5": "{c} is like a tool that helps computers do specific tasks more easily.",
    "basic": "{c} is a programming concept that enables efficient problem-solving.",
    "detailed": ("{c} is a fundamental principle in computer science that provides "
                 "structured approaches to solving complex problems."),
    "technical": ("{c} represents a computational paradigm that optimizes algorithmic "
                  "efficiency through systematic abstraction."),
}

_STYLE_TIPS = {
    "visual": ["Use mind maps and diagrams", "Color-code your notes", "Watch video tutorials"],
    "auditory": ["Explain concepts out loud", "Listen to podcasts on the topic",
                 "Join study groups for discussion"],
    "kinesthetic": ["Build projects while learning", "Take notes by hand",
                    "Use physical models or manipulatives"],
    "reading": ["Read documentation thoroughly", "Take detailed written notes",
                "Summarize in your own words"],
}

_GENERAL_TIPS = [
    "Take regular breaks to improve retention",
    "Practice consistently rather than cramming",
    "Apply what you learn to real projects",
]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def progress_percentage(progress: dict) -> float:
    """Sections count 25% each at weight 0.6; mean quiz score at weight 0.4."""
    sections = len(progress["completed_sections"]) * SECTION_PERCENT
    scores = [
        q["score"] / q["max_score"] * 100
        for q in progress["quiz_scores"]
        if q.get("max_score")
    ]
    quiz = sum(scores) / len(scores) if scores else 0.0
    return min(100.0, sections * SECTION_WEIGHT + quiz * QUIZ_WEIGHT)


def achievements(progress: dict) -> list[str]:
    earned = []
    if progress["completed_sections"]:
        earned.append("First Step: Completed your first section!")
    if any(q.get("max_score") and q["score"] / q["max_score"] >= 0.8
           for q in progress["quiz_scores"]):
        earned.append("Quiz Master: Scored 80% or higher on a quiz!")
    if progress["total_time_spent"] >= 60:
        earned.append("Dedicated Learner: Spent over an hour learning!")
    return earned


@register_agent_class
class TeacherAgent(BaseAgent):
    AGENT_ID = "teacher"

    def tool_handlers(self):
        return {
            "create_tutorial": self.create_tutorial,
            "generate_quiz": self.generate_quiz,
            "track_progress": self.track_progress,
            "create_learning_path": self.create_learning_path,
            "explain_concept": self.explain_concept,
        }

    # ── Tools ──

    async def create_tutorial(self, topic: str, level: str, format: str = "step-by-step",
                              duration: int = 30) -> dict:
        tutorial = {
            "id": self.artifact_key("tutorial_"),
            "topic": topic,
            "level": level,
            "format": format,
            "duration": duration,
            "sections": [
                {"title": "Introduction",
                 "content": f"Welcome to the {topic} tutorial for {level} learners.", "duration": 5},
                {"title": "Core Concepts",
                 "content": f"Understanding the fundamentals of {topic}.", "duration": 10},
                {"title": "Practical Application",
                 "content": f"Applying {topic} in real-world scenarios.", "duration": 10},
                {"title": "Summary & Next Steps",
                 "content": f"Recap and resources for continuing your {topic} journey.", "duration": 5},
            ],
            "resources": [
                {"type": "documentation", "title": f"Official {topic} Documentation"},
                {"type": "video", "title": f"{topic} Explained"},
                {"type": "article", "title": f"Deep Dive into {topic}"},
            ],
            "exercises": [
                {"type": "code", "title": f"Practice {topic} Basics", "difficulty": "easy"},
                {"type": "project", "title": f"Build a {topic} Project", "difficulty": "medium"},
                {"type": "challenge", "title": f"Advanced {topic} Challenge", "difficulty": "hard"},
            ],
        }
        await self.remember(tutorial["id"], tutorial, ttl_seconds=TTL_THIRTY_DAYS)
        return {
            "success": True,
            "tutorial": tutorial,
            "next_steps": [
                "Start with the introduction",
                "Complete exercises after each section",
                "Take the quiz to test understanding",
            ],
        }

    async def generate_quiz(self, topic: str, question_count: int, difficulty: str = "medium",
                            question_types: Optional[list[str]] = None) -> dict:
        question_types = question_types or ["multiple-choice", "true-false"]
        questions = [
            self._question(topic, question_types[i % len(question_types)], difficulty, i + 1)
            for i in range(int(question_count))
        ]
        quiz = {
            "id": self.artifact_key("quiz_"),
            "topic": topic,
            "difficulty": difficulty,
            "questions": questions,
            "created_at": _now_iso(),
        }
        await self.remember(quiz["id"], quiz, ttl_seconds=TTL_ONE_WEEK)
        return {
            "success": True,
            "quiz": quiz,
            "total_points": sum(q["points"] for q in questions),
            "estimated_minutes": len(questions) * 2,
        }

    async def track_progress(self, topic: str, action: str,
                             data: Optional[dict] = None) -> dict:
        """Update the bound user's durable progress record for a topic."""
        if not self.user_id:
            return {"success": False, "error": "No user bound; progress cannot be tracked"}
        data = data or {}
        key = f"progress_{topic}"

        record = await self.recall(key)
        progress: dict[str, Any] = dict(record.value) if record else {
            "topic": topic,
            "started_at": _now_iso(),
            "last_activity": _now_iso(),
            "total_time_spent": 0,
            "completed_sections": [],
            "quiz_scores": [],
            "milestones": [],
        }

        if action == "start":
            progress["started_at"] = _now_iso()
        elif action == "complete":
            spent = data.get("time_spent") or 0
            progress["completed_sections"].append(
                {"section": data.get("section"), "completed_at": _now_iso(), "time_spent": spent}
            )
            progress["total_time_spent"] += spent
        elif action == "quiz-result":
            progress["quiz_scores"].append({
                "quiz_id": data.get("quiz_id"),
                "score": data.get("score", 0),
                "max_score": data.get("max_score", 0),
                "completed_at": _now_iso(),
            })
        elif action == "milestone":
            progress["milestones"].append(
                {"milestone": data.get("milestone"), "achieved_at": _now_iso()}
            )
        else:
            return {"success": False, "error": f"Unknown action: {action}"}
        progress["last_activity"] = _now_iso()

        await self.remember(key, progress, ttl_seconds=None)
        return {
            "success": True,
            "action": action,
            "progress": progress,
            "progress_percentage": progress_percentage(progress),
            "achievements": achievements(progress),
        }

    async def create_learning_path(self, goal: str, current_level: str,
                                   time_commitment: float = 5,
                                   learning_style: str = "visual") -> dict:
        modules = self._modules(goal)
        self._customize(modules, learning_style)
        path = {
            "id": self.artifact_key("learning_path_"),
            "goal": goal,
            "current_level": current_level,
            "modules": modules,
            "estimated_duration": sum(m["duration"] for m in modules),
            "progress": 0,
        }
        await self.remember(path["id"], path, ttl_seconds=None)
        return {
            "success": True,
            "learning_path": path,
            "weekly_schedule": self._weekly_schedule(path, time_commitment),
            "tips": _GENERAL_TIPS + _STYLE_TIPS.get(learning_style, []),
        }

    async def explain_concept(self, concept: str, level: str = "basic",
                              include_examples: bool = True,
                              include_analogies: bool = True) -> dict:
        explanation = {
            "concept": concept,
            "level": level,
            "definition": _DEFINITIONS.get(level, _DEFINITIONS["basic"]).format(c=concept),
            "key_points": [
                f"Core principle of {concept}",
                f"When to use {concept}",
                "Benefits and trade-offs",
                "Common implementations",
            ],
            "examples": [
                {"title": "Simple Example", "code": f"# Basic {concept} implementation",
                 "explanation": "This shows the simplest form"},
                {"title": "Real-world Example", "code": f"# {concept} in practice",
                 "explanation": "Common use case in applications"},
            ] if include_examples else [],
            "analogies": [
                f"{concept} is like a recipe that tells you exactly how to cook a dish",
                f"Think of {concept} as a blueprint for building a house",
                f"{concept} works similar to organizing files in folders",
            ] if include_analogies else [],
            "practice_questions": [
                f"What is the main purpose of {concept}?",
                f"How would you implement {concept} in a project?",
                f"What are the advantages of using {concept}?",
                f"Can you think of a scenario where {concept} would not be suitable?",
            ],
        }
        await self.remember(self.artifact_key(f"explanation_{concept}_"), explanation,
                            ttl_seconds=TTL_ONE_DAY)
        return {
            "success": True,
            "explanation": explanation,
            "further_reading": [
                {"title": f"{concept} Documentation", "type": "official"},
                {"title": f"Advanced {concept} Techniques", "type": "article"},
                {"title": f"{concept} Video Course", "type": "video"},
            ],
        }

    # ── Helpers ──

    @staticmethod
    def _question(topic: str, kind: str, difficulty: str, index: int) -> dict:
        question = {"id": f"q_{index}", "type": kind, "points": _POINTS.get(difficulty, 20)}
        if kind == "multiple-choice":
            question.update(
                question=f"Which of the following best describes {topic}?",
                options=["Option A", "Option B", "Option C", "Option D"],
                correct_answer="Option B",
                explanation=f"Option B is correct because it accurately describes {topic}.",
            )
        elif kind == "true-false":
            question.update(
                question=f"{topic} is primarily used for data processing.",
                correct_answer=True,
                explanation=f"This statement is true because {topic} excels at data processing.",
            )
        else:
            question.update(
                type="short-answer",
                question=f"Explain {topic} in your own words.",
                correct_answer="Various answers accepted",
                explanation=f"A good answer should cover the key aspects of {topic}.",
            )
        return question

    @staticmethod
    def _modules(goal: str) -> list[dict]:
        return [
            {"id": "mod_1", "order": 1, "duration": 60,
             "title": f"Introduction to {goal}",
             "description": f"Get started with the basics of {goal}",
             "topics": ["Overview", "Key Concepts", "Getting Started"],
             "exercises": ["Setup Exercise", "First Steps"]},
            {"id": "mod_2", "order": 2, "duration": 120,
             "title": f"Core {goal} Skills",
             "description": f"Build fundamental skills in {goal}",
             "topics": ["Essential Features", "Best Practices", "Common Patterns"],
             "exercises": ["Practice Exercises", "Mini Project"]},
            {"id": "mod_3", "order": 3, "duration": 180,
             "title": f"Advanced {goal} Techniques",
             "description": f"Master advanced concepts in {goal}",
             "topics": ["Advanced Features", "Optimization", "Real-world Applications"],
             "exercises": ["Challenge Problems", "Capstone Project"]},
        ]

    @staticmethod
    def _customize(modules: list[dict], style: str):
        for module in modules:
            if style == "visual":
                module["description"] += " (includes diagrams and visual aids)"
            elif style == "auditory":
                module["description"] += " (includes audio explanations)"
            elif style == "kinesthetic":
                module["exercises"].append("Hands-on Activity")
            elif style == "reading":
                module["description"] += " (includes written guides)"

    @staticmethod
    def _weekly_schedule(path: dict, hours_per_week: float) -> dict:
        minutes_per_week = max(float(hours_per_week), 0.5) * 60
        plan = []
        week = 1
        for module in path["modules"]:
            weeks = math.ceil(module["duration"] / minutes_per_week)
            per_week = math.ceil(len(module["topics"]) / weeks)
            for i in range(weeks):
                chunk = min(minutes_per_week, module["duration"] - i * minutes_per_week)
                plan.append({
                    "week": week,
                    "module": module["title"],
                    "topics": module["topics"][i * per_week:(i + 1) * per_week],
                    "estimated_hours": round(chunk / 60, 2),
                })
                week += 1
        return {
            "total_weeks": len(plan),
            "weekly_plan": plan,
        }
