"""
Debugger — the problem solver. Error analysis, fix suggestions, simulated
traces, performance and security reviews.
"""

import logging
import re
from typing import Any, Optional

from agents.base import BaseAgent, register_agent_class
from config import TTL_ONE_DAY, TTL_ONE_WEEK, TTL_THIRTY_DAYS

logger = logging.getLogger(__name__)

# (substring, error class), first match wins
ERROR_CLASSES = [
    ("SyntaxError", "syntax"),
    ("IndentationError", "syntax"),
    ("TypeError", "type"),
    ("AttributeError", "type"),
    ("ReferenceError", "reference"),
    ("NameError", "reference"),
    ("RangeError", "range"),
    ("IndexError", "range"),
    ("KeyError", "lookup"),
    ("ImportError", "import"),
    ("ModuleNotFoundError", "import"),
    ("Error", "runtime"),
    ("Exception", "runtime"),
]

# (pattern, type, severity, cwe, recommendation)
VULNERABILITY_PATTERNS = [
    (r"\beval\s*\(", "code-injection", "critical", "CWE-95",
     "Never use eval() or similar dynamic code execution"),
    (r"\bexec\s*\(", "code-injection", "critical", "CWE-95",
     "Never use eval() or similar dynamic code execution"),
    (r"\bnew\s+Function\s*\(", "code-injection", "critical", "CWE-95",
     "Never use eval() or similar dynamic code execution"),
    (r"\.innerHTML\s*=|dangerouslySetInnerHTML", "xss", "high", "CWE-79",
     "Sanitize all user input and use safe DOM manipulation methods"),
    (r"\bpickle\.loads?\s*\(", "insecure-deserialization", "high", "CWE-502",
     "Do not unpickle untrusted data; use JSON instead"),
    (r"\byaml\.load\s*\((?![^)]*SafeLoader)", "insecure-deserialization", "high", "CWE-502",
     "Use yaml.safe_load for untrusted YAML"),
    (r"shell\s*=\s*True", "command-injection", "high", "CWE-78",
     "Pass argument lists to subprocess instead of shell strings"),
    (r"\bos\.system\s*\(", "command-injection", "high", "CWE-78",
     "Pass argument lists to subprocess instead of shell strings"),
    (r"(?i)\b(password|passwd|secret|api_key|token)\s*[:=]\s*['\"][^'\"]{4,}['\"]",
     "hardcoded-secret", "high", "CWE-798",
     "Load secrets from the environment or a secret store"),
]

_SEVERITY_ORDER = {"critical": 4, "high": 3, "medium": 2, "low": 1}

_PREVENTION_TIPS = {
    "syntax": ["Use a linter to catch syntax errors early",
               "Enable IDE syntax highlighting",
               "Review code before running"],
    "runtime": ["Add comprehensive error handling",
                "Validate inputs before processing",
                "Use type hints and a type checker"],
    "logic": ["Write unit tests for edge cases",
              "Use debugging tools effectively",
              "Review algorithm logic carefully"],
    "performance": ["Profile before optimizing",
                    "Measure with realistic data sizes"],
    "security": ["Treat all external input as untrusted",
                 "Keep dependencies up to date"],
}

_FIX_TEMPLATES = [
    ("Direct fix for {kind} error",
     "This fix directly addresses the error by adding error handling", 0.9),
    ("Alternative approach that checks preconditions first",
     "This approach prevents the error by checking conditions first", 0.7),
    ("Refactored solution with better error handling",
     "This solution refactors the code for better maintainability", 0.5),
]


def classify_error(error: str) -> str:
    for needle, kind in ERROR_CLASSES:
        if needle in error:
            return kind
    return "unknown"


def assess_severity(error: str) -> str:
    lower = error.lower()
    if "critical" in lower or "fatal" in lower:
        return "critical"
    if "error" in lower or "exception" in lower:
        return "high"
    if "warning" in lower:
        return "medium"
    return "low"


def _indent(code: str, prefix: str) -> str:
    return "\n".join(prefix + line if line else line for line in code.splitlines())


@register_agent_class
class DebuggerAgent(BaseAgent):
    AGENT_ID = "debugger"

    def tool_handlers(self):
        return {
            "analyze_error": self.analyze_error,
            "suggest_fixes": self.suggest_fixes,
            "trace_execution": self.trace_execution,
            "performance_analysis": self.performance_analysis,
            "security_scan": self.security_scan,
        }

    # ── Tools ──

    async def analyze_error(self, error: str, code: Optional[str] = None,
                            language: str = "python",
                            context: Optional[dict] = None) -> dict:
        analysis = {
            "error_type": classify_error(error),
            "severity": assess_severity(error),
            "root_cause": self._root_cause(error),
            "affected_code": self._affected_code(error),
            "suggested_fixes": self._quick_fixes(error, language),
        }
        await self.remember(
            self.artifact_key("error_analysis_"),
            {"error": error, "code": code, "language": language,
             "context": context or {}, "analysis": analysis},
            ttl_seconds=TTL_ONE_WEEK,
        )
        return {
            "success": True,
            "analysis": analysis,
            "quick_fix": analysis["suggested_fixes"][0] if analysis["suggested_fixes"] else None,
            "debugging_steps": [
                f"1. Identify the error location: {', '.join(analysis['affected_code']) or 'unknown'}",
                f"2. Understand the error type: {analysis['error_type']}",
                f"3. Review the root cause: {analysis['root_cause']}",
                "4. Apply the suggested fix",
                "5. Test the solution thoroughly",
                "6. Add error handling to prevent recurrence",
            ],
        }

    def suggest_fixes(self, issue: str, code: str, error_type: str = "runtime",
                      constraints: Optional[list[str]] = None) -> dict:
        constraints = constraints or []
        wrapped = (
            f"try:\n{_indent(code, '    ')}\nexcept Exception as e:\n    logger.error(\"Failed: %s\", e)\n    raise",
            f"if value is not None:\n{_indent(code, '    ')}",
            f"def run():\n{_indent(code, '    ')}\n\n\nrun()",
        )
        fixes = [
            {
                "id": f"fix_{i + 1}",
                "description": description.format(kind=error_type),
                "code": snippet,
                "confidence": confidence,
                "explanation": explanation,
            }
            for i, ((description, explanation, confidence), snippet)
            in enumerate(zip(_FIX_TEMPLATES, wrapped))
        ]
        applicable = [f for f in fixes if all(self._meets(f, c) for c in constraints)]
        return {
            "success": True,
            "issue": issue,
            "fixes": applicable,
            "recommended_fix": applicable[0] if applicable else None,
            "alternative_approaches": [
                "Use a library that handles this case",
                "Implement a custom error handler",
                "Refactor to avoid the issue entirely",
            ],
            "prevention_tips": _PREVENTION_TIPS.get(
                error_type, ["Follow best practices", "Test thoroughly"]
            ),
        }

    def trace_execution(self, code: str, inputs: Optional[dict] = None,
                        breakpoints: Optional[list[int]] = None) -> dict:
        """Simulate a line-by-line trace. Assignments update a symbolic state."""
        state: dict[str, Any] = dict(inputs or {})
        stops = {int(b) for b in breakpoints or []}
        trace = []
        hit = 0

        for lineno, raw in enumerate(code.splitlines(), 1):
            line = raw.strip()
            if not line or line.startswith(("#", "//")):
                continue
            step = {"step": len(trace) + 1, "line": lineno, "state": dict(state), "output": None}
            assignment = re.match(r"(?:const|let|var)?\s*([A-Za-z_]\w*)\s*=(?!=)", line)
            if assignment:
                state[assignment.group(1)] = f"value_at_line_{lineno}"
            if "print(" in line or "console.log" in line:
                step["output"] = f"Output from line {lineno}"
            trace.append(step)
            if lineno in stops:
                hit += 1
                trace.append({
                    "step": len(trace) + 1,
                    "line": lineno,
                    "state": {**state, "_breakpoint": True},
                    "output": f"Breakpoint hit at line {lineno}",
                })

        insights = []
        if any(t["output"] for t in trace):
            insights.append("Code produces output during execution")
        if len(trace) > 50:
            insights.append("Long execution trace - consider optimizing loops")
        return {
            "success": True,
            "trace": trace,
            "summary": {
                "total_steps": len(trace),
                "breakpoints_hit": hit,
                "variables_tracked": len(state),
                "output_generated": sum(1 for t in trace if t["output"]),
            },
            "insights": insights,
        }

    async def performance_analysis(self, code: str, metrics: Optional[dict] = None,
                                   target_improvement: str = "both") -> dict:
        analysis = {
            "time_complexity": self._time_complexity(code),
            "space_complexity": self._space_complexity(code),
            "bottlenecks": self._bottlenecks(code),
            "optimizations": self._optimizations(target_improvement),
        }
        await self.remember(
            self.artifact_key("perf_analysis_"),
            {"code": code, "metrics": metrics or {}, "analysis": analysis},
            ttl_seconds=TTL_ONE_DAY,
        )
        return {
            "success": True,
            "analysis": analysis,
            "prioritized_optimizations": sorted(
                analysis["optimizations"], key=lambda o: o["impact_rank"], reverse=True
            ),
            "resources": [
                "Use profiling tools for accurate measurements",
                "Consider caching frequently accessed data",
                "Optimize database queries if applicable",
            ],
        }

    async def security_scan(self, code: str, scan_type: str = "basic",
                            language: str = "python") -> dict:
        vulnerabilities = []
        for pattern, kind, severity, cwe, _ in VULNERABILITY_PATTERNS:
            for match in re.finditer(pattern, code):
                vulnerabilities.append({
                    "type": kind,
                    "severity": severity,
                    "cwe": cwe,
                    "line": code.count("\n", 0, match.start()) + 1,
                    "match": match.group(0),
                })
        if scan_type in ("comprehensive", "owasp-top10"):
            if re.search(r"\binput\b", code) and "sanitize" not in code and "validate" not in code:
                vulnerabilities.append({
                    "type": "input-validation", "severity": "medium", "cwe": "CWE-20",
                    "line": None, "match": "input",
                })

        vulnerabilities.sort(key=lambda v: _SEVERITY_ORDER[v["severity"]], reverse=True)
        found = {v["type"] for v in vulnerabilities}
        recommendations = list(dict.fromkeys(
            rec for _, kind, _, _, rec in VULNERABILITY_PATTERNS if kind in found
        ))
        if "input-validation" in found:
            recommendations.append("Implement comprehensive input validation and sanitization")

        report = {
            "scan_type": scan_type,
            "language": language,
            "vulnerabilities": vulnerabilities,
            "severity": vulnerabilities[0]["severity"] if vulnerabilities else "low",
            "compliance": {"owasp": "non-compliant" if vulnerabilities else "compliant"},
            "recommendations": recommendations,
        }
        await self.remember(self.artifact_key("security_scan_"), report,
                            ttl_seconds=TTL_THIRTY_DAYS)
        return {
            "success": True,
            "report": report,
            "critical_issues": [v for v in vulnerabilities if v["severity"] == "critical"],
        }

    # ── Helpers ──

    @staticmethod
    def _root_cause(error: str) -> str:
        lower = error.lower()
        if "undefined" in lower or "nonetype" in lower:
            return "Attempting to access an undefined variable or property"
        if "null" in lower:
            return "Null reference exception"
        if "syntax" in lower or "indentation" in lower:
            return "Invalid syntax in the code"
        if "import" in lower or "no module named" in lower:
            return "A module or name could not be imported"
        return "Error in program logic or execution flow"

    @staticmethod
    def _affected_code(error: str) -> list[str]:
        affected = [f"Line {n}" for n in re.findall(r"line (\d+)", error, re.IGNORECASE)]
        affected.extend(re.findall(r"\bin (\w+)$", error, re.MULTILINE))
        affected.extend(re.findall(r"\bat (\w+)", error))
        return list(dict.fromkeys(affected))

    @staticmethod
    def _quick_fixes(error: str, language: str) -> list[dict]:
        lower = error.lower()
        fixes = []
        if "undefined" in lower or "nonetype" in lower:
            check = ("if value is not None:" if language == "python"
                     else "if (value !== undefined && value !== null) {")
            fixes.append({
                "id": "fix_undefined",
                "description": "Add a missing-value check",
                "code": check,
                "confidence": 0.9,
                "explanation": "Check that the value exists before using it",
            })
        if "syntax" in lower or "indentation" in lower:
            fixes.append({
                "id": "fix_syntax",
                "description": "Fix syntax error",
                "code": "# Check for missing brackets, colons, or quotes",
                "confidence": 0.8,
                "explanation": "Review the syntax and ensure all brackets and quotes are closed",
            })
        return fixes

    @staticmethod
    def _meets(fix: dict, constraint: str) -> bool:
        if constraint == "no-try-catch" and "try" in fix["code"]:
            return False
        if constraint == "performance" and fix["confidence"] < 0.7:
            return False
        return True

    @staticmethod
    def _time_complexity(code: str) -> str:
        if re.search(r"\bsort(ed)?\s*\(|\.sort\s*\(", code):
            return "O(n log n)"
        loops = len(re.findall(r"\b(for|while)\b", code))
        if loops == 0:
            return "O(1)"
        return "O(n)" if loops == 1 else f"O(n^{loops})"

    @staticmethod
    def _space_complexity(code: str) -> str:
        if re.search(r"\[\]|\{\}|\bdict\(|\blist\(|\bset\(|\bArray\b|\bMap\b|\bSet\b", code):
            return "O(n)"
        return "O(1)"

    @staticmethod
    def _bottlenecks(code: str) -> list[dict]:
        bottlenecks = []
        depth = 0
        for line in code.splitlines():
            if re.match(r"\s*(for|while)\b", line):
                indent = len(line) - len(line.lstrip())
                depth = max(depth, indent)
        if len(re.findall(r"\b(for|while)\b", code)) > 1 and depth > 0:
            bottlenecks.append({"type": "nested-loops",
                                "location": "Multiple nested iterations", "impact": "high"})
        functions = re.findall(r"def (\w+)\(", code)
        if any(len(re.findall(rf"\b{f}\(", code)) > 1 for f in functions):
            bottlenecks.append({"type": "recursion",
                                "location": "Recursive function calls", "impact": "medium"})
        if re.search(r"\+=\s*['\"]", code):
            bottlenecks.append({"type": "string-concatenation",
                                "location": "String built in a loop", "impact": "low"})
        return bottlenecks

    @staticmethod
    def _optimizations(target: str) -> list[dict]:
        optimizations = []
        if target in ("speed", "both"):
            optimizations.append({"type": "algorithm", "impact_rank": 2,
                                  "suggestion": "Consider using a more efficient algorithm",
                                  "expected_improvement": "20-50%"})
        if target in ("memory", "both"):
            optimizations.append({"type": "memory", "impact_rank": 1,
                                  "suggestion": "Reuse objects or stream data instead of materializing it",
                                  "expected_improvement": "10-30%"})
        return optimizations
