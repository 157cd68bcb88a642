"""
Dev — the code assistant. Runs, checks, tests and reviews code snippets.
"""

import ast
import asyncio
import json
import logging
import re
import sys
import tomllib
from pathlib import Path
from typing import Optional

from agents.base import BaseAgent, register_agent_class
from config import (
    ALLOW_CODE_EXECUTION,
    CODE_EXECUTION_TIMEOUT,
    MAX_TOOL_OUTPUT_CHARS,
    TTL_ONE_DAY,
    TTL_ONE_HOUR,
    WORKSPACE_ROOT,
)

logger = logging.getLogger(__name__)

_BRACKETS = {")": "(", "]": "[", "}": "{"}
_DECISION_POINT = re.compile(r"\b(if|elif|for|while|case|except|catch)\b|&&|\|\||\?[^:\n]*:")
_REQUIREMENT = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._\-]*(?:\[[^\]]*\])?)\s*(.*)$")
_JS_FUNCTION = re.compile(
    r"(?:function\s+(\w+)\s*\(|(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?(?:function|\())"
)

_TEST_TEMPLATES = {
    "pytest": {
        "header": "import pytest\n\nfrom {module} import {names}\n\n",
        "case": "\ndef test_{name}_is_callable():\n    assert callable({name})\n\n",
        "footer": "",
    },
    "unittest": {
        "header": "import unittest\n\nfrom {module} import {names}\n\n\nclass GeneratedTests(unittest.TestCase):\n",
        "case": "    def test_{name}_is_callable(self):\n        self.assertTrue(callable({name}))\n\n",
        "footer": "\nif __name__ == \"__main__\":\n    unittest.main()\n",
    },
    "jest": {
        "header": "const {{ {names} }} = require('./{module}');\n\ndescribe('Generated Tests', () => {{\n",
        "case": "  it('should define {name}', () => {{\n    expect({name}).toBeDefined();\n  }});\n\n",
        "footer": "}});\n",
    },
}


def _truncate(text: str) -> str:
    return text if len(text) <= MAX_TOOL_OUTPUT_CHARS else text[:MAX_TOOL_OUTPUT_CHARS] + "\n[truncated]"


def _validate_path(p: Path, base: Path) -> Path:
    """Resolve a path and ensure it is inside base. Raises ValueError otherwise."""
    base = base.resolve()
    resolved = (p if p.is_absolute() else base / p).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(f"Path outside workspace: {resolved} is not under {base}")
    return resolved


def _is_pinned(spec: str) -> bool:
    spec = spec.strip()
    if not spec or spec in ("*", "latest"):
        return False
    if spec.startswith(("^", "~", ">", "<")) and "==" not in spec:
        return False
    return spec.startswith("==") or spec[0].isdigit()


@register_agent_class
class DevAgent(BaseAgent):
    AGENT_ID = "dev"

    def __init__(self, definition, backend, memory):
        super().__init__(definition, backend, memory)
        self.allow_execution = ALLOW_CODE_EXECUTION
        self.workspace_root = WORKSPACE_ROOT

    def tool_handlers(self):
        return {
            "execute_code": self.execute_code,
            "syntax_check": self.syntax_check,
            "analyze_dependencies": self.analyze_dependencies,
            "generate_tests": self.generate_tests,
            "refactor_code": self.refactor_code,
        }

    # ── Tools ──

    async def execute_code(self, language: str, code: str,
                           timeout: Optional[float] = None) -> dict:
        if not self.allow_execution:
            return {"success": False, "language": language,
                    "error": "Code execution is disabled in this profile"}
        if language == "python":
            argv = [sys.executable, "-I", "-c", code]
        elif language == "bash":
            argv = ["bash", "-c", code]
        else:
            return {"success": False, "language": language,
                    "error": f"Unsupported language: {language}"}

        limit = min(float(timeout or CODE_EXECUTION_TIMEOUT), CODE_EXECUTION_TIMEOUT)
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=limit)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return {"success": False, "language": language,
                    "error": f"Execution timed out after {limit}s"}

        result = {
            "success": proc.returncode == 0,
            "language": language,
            "exit_code": proc.returncode,
            "stdout": _truncate(stdout.decode(errors="replace").strip()),
            "stderr": _truncate(stderr.decode(errors="replace").strip()),
        }
        await self.remember(
            self.artifact_key("execution_"),
            {"language": language, "code": code, "result": result},
            ttl_seconds=TTL_ONE_DAY,
        )
        return result

    def syntax_check(self, language: str, code: str, strict: bool = True) -> dict:
        if language == "python":
            errors, warnings = self._check_python(code, strict)
        elif language in ("javascript", "typescript"):
            errors, warnings = self._check_javascript(code, strict)
        else:
            return {"success": False, "language": language,
                    "error": f"Unsupported language: {language}"}
        return {
            "success": not errors,
            "language": language,
            "errors": errors,
            "warnings": warnings,
        }

    async def analyze_dependencies(self, manifest_path: str,
                                   check_unpinned: bool = True) -> dict:
        try:
            path = _validate_path(Path(manifest_path).expanduser(), self.workspace_root)
        except ValueError as e:
            logger.warning("Rejected manifest path %s: %s", manifest_path, e)
            return {"success": False, "error": str(e)}
        if not path.is_file():
            return {"success": False, "error": f"File not found: {manifest_path}"}

        try:
            if path.name == "package.json":
                ecosystem, deps, dev_deps = "npm", *self._read_package_json(path)
            elif path.name == "pyproject.toml":
                ecosystem, deps, dev_deps = "pip", *self._read_pyproject(path)
            elif path.suffix == ".txt":
                ecosystem, deps, dev_deps = "pip", self._read_requirements(path), {}
            else:
                return {"success": False, "error": f"Unsupported manifest: {path.name}"}
        except (OSError, ValueError, tomllib.TOMLDecodeError) as e:
            return {"success": False, "error": f"Could not parse {path.name}: {e}"}

        analysis = {
            "success": True,
            "manifest": str(path),
            "ecosystem": ecosystem,
            "dependencies": deps,
            "dev_dependencies": dev_deps,
            "issues": [],
        }
        if check_unpinned:
            unpinned = sorted(
                name for name, spec in {**deps, **dev_deps}.items() if not _is_pinned(spec)
            )
            analysis["unpinned"] = unpinned
            if unpinned:
                analysis["issues"].append(
                    f"{len(unpinned)} dependencies are not pinned to an exact version"
                )

        await self.remember(self.artifact_key("dep_analysis_"), analysis, ttl_seconds=TTL_ONE_HOUR)
        return analysis

    def generate_tests(self, code: str, framework: str, module: str = "module") -> dict:
        template = _TEST_TEMPLATES.get(framework)
        if template is None:
            return {"success": False, "error": f"Unsupported framework: {framework}"}

        names = self._find_functions(code)
        tests = template["header"].format(module=module, names=", ".join(names) or "*")
        for name in names:
            tests += template["case"].format(name=name)
        tests += template["footer"]
        return {
            "success": True,
            "framework": framework,
            "tests": tests,
            "functions_found": names,
        }

    async def refactor_code(self, code: str, goals: Optional[list[str]] = None) -> dict:
        goals = goals or ["improve readability", "reduce complexity"]
        complexity = self._complexity(code)
        suggestions = []

        if complexity["cyclomatic"] > 10:
            suggestions.append({"type": "complexity", "severity": "high",
                                "message": "Consider breaking down complex functions"})
        if complexity["max_line_length"] > 100:
            suggestions.append({"type": "readability", "severity": "low",
                                "message": "Wrap lines longer than 100 characters"})
        if complexity["max_indent"] >= 16:
            suggestions.append({"type": "nesting", "severity": "medium",
                                "message": "Flatten deeply nested blocks with early returns"})
        if re.search(r"\bvar\s", code):
            suggestions.append({"type": "modernization", "severity": "medium",
                                "message": "Replace var with const/let"})
        if re.search(r"except\s*:", code):
            suggestions.append({"type": "error-handling", "severity": "medium",
                                "message": "Catch specific exceptions instead of a bare except"})

        await self.remember(
            self.artifact_key("refactor_"),
            {"original_code": code, "suggestions": suggestions, "goals": goals},
            ttl_seconds=TTL_ONE_DAY,
        )
        return {"success": True, "suggestions": suggestions,
                "complexity": complexity, "goals": goals}

    # ── Helpers ──

    @staticmethod
    def _check_python(code: str, strict: bool) -> tuple[list, list]:
        errors, warnings = [], []
        try:
            ast.parse(code)
        except SyntaxError as e:
            errors.append({"line": e.lineno, "column": e.offset, "message": e.msg})
        if strict:
            for lineno, line in enumerate(code.splitlines(), 1):
                if "\t" in line[: len(line) - len(line.lstrip())]:
                    warnings.append({"line": lineno, "message": "Indentation uses tabs"})
                if re.match(r"\s*except\s*:", line):
                    warnings.append({"line": lineno, "message": "Bare except clause"})
        return errors, warnings

    @staticmethod
    def _check_javascript(code: str, strict: bool) -> tuple[list, list]:
        errors, warnings = [], []
        stack: list[tuple[str, int]] = []
        quote = None
        for lineno, line in enumerate(code.splitlines(), 1):
            escaped = False
            for ch in line:
                if quote:
                    if escaped:
                        escaped = False
                    elif ch == "\\":
                        escaped = True
                    elif ch == quote:
                        quote = None
                    continue
                if ch in "'\"`":
                    quote = ch
                elif ch in "([{":
                    stack.append((ch, lineno))
                elif ch in _BRACKETS:
                    if not stack or stack[-1][0] != _BRACKETS[ch]:
                        errors.append({"line": lineno, "message": f"Unexpected '{ch}'"})
                    else:
                        stack.pop()
            if quote in ("'", '"'):
                errors.append({"line": lineno, "message": "Unterminated string literal"})
                quote = None
            if strict and re.search(r"[^=!]==[^=]", line):
                warnings.append({"line": lineno, "message": "Use === instead of =="})
        for ch, lineno in stack:
            errors.append({"line": lineno, "message": f"Unclosed '{ch}'"})
        return errors, warnings

    @staticmethod
    def _find_functions(code: str) -> list[str]:
        try:
            tree = ast.parse(code)
        except SyntaxError:
            return [a or b for a, b in _JS_FUNCTION.findall(code)]
        return [
            node.name for node in tree.body
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
            and not node.name.startswith("_")
        ]

    @staticmethod
    def _complexity(code: str) -> dict:
        lines = code.splitlines() or [""]
        return {
            "cyclomatic": 1 + len(_DECISION_POINT.findall(code)),
            "lines": len(lines),
            "functions": len(re.findall(r"\bdef\s|\bfunction\b", code)),
            "max_line_length": max(len(line) for line in lines),
            "max_indent": max(len(line) - len(line.lstrip()) for line in lines),
        }

    @staticmethod
    def _read_package_json(path: Path) -> tuple[dict, dict]:
        data = json.loads(path.read_text())
        return dict(data.get("dependencies", {})), dict(data.get("devDependencies", {}))

    @staticmethod
    def _read_requirements(path: Path) -> dict:
        deps = {}
        for line in path.read_text().splitlines():
            line = line.split("#", 1)[0].strip()
            if not line or line.startswith("-"):
                continue
            match = _REQUIREMENT.match(line)
            if match:
                deps[match.group(1)] = match.group(2).strip()
        return deps

    @classmethod
    def _read_pyproject(cls, path: Path) -> tuple[dict, dict]:
        project = tomllib.loads(path.read_text()).get("project", {})

        def parse(entries: list[str]) -> dict:
            out = {}
            for entry in entries:
                match = _REQUIREMENT.match(entry.split(";", 1)[0])
                if match:
                    out[match.group(1)] = match.group(2).strip()
            return out

        optional = {}
        for group in project.get("optional-dependencies", {}).values():
            optional.update(parse(group))
        return parse(project.get("dependencies", [])), optional
