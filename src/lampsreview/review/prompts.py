"""System and user prompts for the three review passes."""

from __future__ import annotations

from lampsreview.context.models import ContextFile, ReviewContext
from lampsreview.models import PassType

_JSON_ONLY = "Respond with valid JSON only. No markdown, no explanations outside the JSON."

PASS_SYSTEM_PROMPTS: dict[PassType, str] = {
    PassType.ARCHITECTURE: f"""You are an expert software architect reviewing a codebase's structure and organization.

Focus on:
1. **Project Structure** - Is the organization logical? Are there missing directories or patterns?
2. **Dependencies** - Are there concerning dependencies? Version issues? Missing dependencies?
3. **Entry Points** - Are they well-organized? Clear application flow?
4. **Configuration** - Are configs complete? Missing environment handling?
5. **Architecture Patterns** - Consistent patterns? Clear separation of concerns?
6. **Scalability Concerns** - Any obvious bottlenecks or limitations?

Be concise and focus on high-level issues. Don't comment on specific code implementation details - those will be covered in the deep dive pass.

{_JSON_ONLY}""",
    PassType.DEEP_DIVE: f"""You are an expert senior software engineer conducting a thorough code review.

Focus on:
1. **Bugs and Logic Errors** - Off-by-one, null handling, race conditions, incorrect conditions
2. **Performance Issues** - N+1 queries, memory leaks, unnecessary re-renders, inefficient algorithms
3. **Code Quality** - Complexity, readability, maintainability, code smells
4. **Best Practices** - Framework-specific patterns, TypeScript/Python idioms, error handling
5. **Edge Cases** - Unhandled scenarios, missing validation, boundary conditions

Be specific and actionable. Include line numbers when possible. Don't nitpick style issues unless they significantly affect readability.

{_JSON_ONLY}""",
    PassType.SECURITY: f"""You are a security expert conducting a security-focused code review.

Focus on OWASP Top 10 and common vulnerabilities:
1. **Injection** - SQL, NoSQL, OS command, LDAP injection
2. **Broken Authentication** - Weak passwords, session issues, credential exposure
3. **Sensitive Data Exposure** - Unencrypted data, exposed secrets, logging sensitive info
4. **XXE** - XML external entity attacks
5. **Broken Access Control** - Missing authorization checks, IDOR, privilege escalation
6. **Security Misconfiguration** - Default configs, verbose errors, unnecessary features
7. **XSS** - Stored, reflected, DOM-based cross-site scripting
8. **Insecure Deserialization** - Untrusted data deserialization
9. **Using Components with Known Vulnerabilities** - Outdated dependencies
10. **Insufficient Logging** - Missing audit trails, security event logging

Be thorough but avoid false positives. If you're uncertain, mark severity as 'info' rather than 'error'.

{_JSON_ONLY}""",
}

RULE_CATEGORIES: dict[PassType, list[tuple[str, str]]] = {
    PassType.ARCHITECTURE: [
        ("arch-structure", "Project structure issues"),
        ("arch-dependency", "Dependency concerns"),
        ("arch-pattern", "Pattern/consistency issues"),
        ("arch-config", "Configuration problems"),
        ("arch-scale", "Scalability concerns"),
    ],
    PassType.DEEP_DIVE: [
        ("bug-logic", "Logic errors"),
        ("bug-null", "Null/undefined handling"),
        ("bug-async", "Async/race conditions"),
        ("perf-query", "Query performance"),
        ("perf-memory", "Memory issues"),
        ("perf-render", "Rendering performance"),
        ("quality-complexity", "Code complexity"),
        ("quality-readability", "Readability issues"),
        ("practice-framework", "Framework best practices"),
        ("practice-error", "Error handling"),
    ],
    PassType.SECURITY: [
        ("security-injection", "Injection vulnerabilities"),
        ("security-auth", "Authentication issues"),
        ("security-exposure", "Data exposure"),
        ("security-xss", "Cross-site scripting"),
        ("security-access", "Access control issues"),
        ("security-config", "Security misconfiguration"),
        ("security-crypto", "Cryptography issues"),
        ("security-secrets", "Exposed secrets"),
    ],
}

LANGUAGE_IDS = {
    "ts": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "jsx": "jsx",
    "py": "python",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "md": "markdown",
    "css": "css",
    "scss": "scss",
    "html": "html",
    "vue": "vue",
    "svelte": "svelte",
}


def language_id(path: str) -> str:
    """Code-fence language for a file path."""
    name = path.rsplit("/", 1)[-1]
    extension = name.rsplit(".", 1)[-1] if "." in name else ""
    return LANGUAGE_IDS.get(extension) or extension or "text"


def build_pass_prompt(context: ReviewContext, custom_prompt: str | None = None) -> str:
    """Render the user prompt for one pass."""
    parts: list[str] = []

    if custom_prompt:
        parts.append(f"## Additional Instructions\n{custom_prompt}\n\n")

    meta = context.metadata
    parts.append("## Review Context\n")
    parts.append(f"- **Pass Type**: {context.pass_type.value}\n")
    parts.append(f"- **Total Files in Codebase**: {meta.total_files}\n")
    parts.append(f"- **Files in This Review**: {len(context.files)}\n")
    parts.append(f"- **Frameworks**: {', '.join(meta.frameworks) or 'None detected'}\n")
    parts.append(f"- **Focus Areas**: {', '.join(meta.focus_areas)}\n\n")

    if context.pass_type == PassType.ARCHITECTURE:
        tree = meta.full_file_tree if meta.full_file_tree is not None else [f.path for f in context.files]
        parts.append("## File Tree\n```\n")
        parts.append("\n".join(tree))
        parts.append("\n```\n\n")

    parts.append("## Files to Review\n\n")
    for context_file in context.files:
        parts.append(format_context_file(context_file))

    parts.append(response_format(context.pass_type))
    return "".join(parts)


def format_context_file(context_file: ContextFile) -> str:
    lang = language_id(context_file.path)
    out = f"### {context_file.path}\n*Reason: {context_file.reason}*\n\n"

    if context_file.content:
        out += f"```{lang}\n{context_file.content}\n```\n\n"
    elif context_file.slices:
        for s in context_file.slices:
            out += f"**Lines {s.start_line}-{s.end_line}** ({s.reason}):\n"
            out += f"```{lang}\n{s.content}\n```\n\n"
    return out


def response_format(pass_type: PassType) -> str:
    """JSON response schema, rule categories and severity levels."""
    categories = "\n".join(
        f"- `ai/{rule_id}` - {description}" for rule_id, description in RULE_CATEGORIES[pass_type]
    )
    return f"""## Response Format

Respond with a JSON object containing your findings:

```json
{{
  "findings": [
    {{
      "ruleId": "ai/<category>-<specific-issue>",
      "severity": "error" | "warning" | "info" | "hint",
      "file": "relative/path/to/file.ts",
      "line": 42,
      "message": "Clear description of the issue",
      "suggestion": "How to fix it (optional)"
    }}
  ],
  "summary": "Brief overall assessment for this {pass_type.value} review"
}}
```

Rule ID categories for this pass:
{categories}

Severity levels:
- `error`: Critical issues that must be fixed
- `warning`: Important issues that should be addressed
- `info`: Suggestions for improvement
- `hint`: Minor observations

If there are no issues, return: {{"findings": [], "summary": "No significant issues found."}}"""
