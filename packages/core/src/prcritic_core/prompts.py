"""Prompt templates and output schemas for every AI exchange.

Templates are plain ``str.format`` strings; the callers own the data that
fills them. The schemas are JSON Schema dicts shared by the providers (which
hand them to the model) and by validation.py (which checks the answers).
"""

REVIEW_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "strengths": {"type": "array", "items": {"type": "string"}},
        "improvements": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "line": {"type": "number", "description": "The new-file line number the comment refers to."},
                    "file": {"type": "string", "description": "The full path of the file being commented on."},
                    "category": {
                        "type": "string",
                        "description": "A category such as 'Security', 'Performance', 'Style', 'Correctness'.",
                    },
                    "comment": {
                        "type": "string",
                        "description": "Detailed, actionable feedback. Wrap identifiers in backticks.",
                    },
                },
                "required": ["line", "file", "category", "comment"],
            },
        },
    },
}

TEST_SUGGESTIONS_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "unitTests": {"type": "array", "items": {"type": "string"}},
        "integrationTests": {"type": "array", "items": {"type": "string"}},
        "manualChecks": {"type": "array", "items": {"type": "string"}},
    },
}

CONTEXT_PROMPT = """**Act as a research assistant for a senior software engineer.**
Collect and summarize everything useful about this pull request so a deep code review can follow.

Cover:
1. **PR goal:** what the PR sets out to do, judging by its title and description.
2. **Project overview:** the project's purpose, framework and architecture, inferred from the README and code.
3. **Existing conventions:** coding style, naming and architectural patterns visible in the original files.
4. **Key changes:** the core files and functions the diff touches.

Answer with a concise block of plain text. It is the input to the next review stage.
---
**PR Title:** {title}
**PR Description:** {body}
**README.md Content:**
```markdown
{readme}
```
**Original Content of Changed Files (base branch):**
```
{snapshots}
```
**Code Diff:**
```diff
{diff}
```
"""

INITIAL_REVIEW_PROMPT = """**Act as a Lead Software Engineer performing a code review.**
Give a solid first review of the change below, focused on **Security, Performance, Correctness and Maintainability**.
Respond with a JSON object that follows the provided schema. Wrap identifiers in backticks inside comments.

**CRITICAL INSTRUCTION:** every entry in 'improvements' must point at a file and a new-file line number that is \
added or shown as context inside one of the diff hunks. Do not comment on code outside the hunks.

**Project & PR Context:**
{summary}

**Code Diff to Review:**
```diff
{diff}
```
"""

REFINEMENT_PROMPT = """**Act as a meticulous Principal Engineer who owns the quality of code reviews.**
Critique the initial review below and produce a final, improved version.

1. **Re-check the goal:** does the review address what the PR is trying to do?
2. **Find the flaws:** is it too generic, does it miss subtle bugs, edge cases or security problems? \
Does it comment on code *outside* the diff?
3. **Go deeper:** make every suggestion concrete and actionable.
4. **Rewrite:** return a more accurate and more useful review.

**CRITICAL INSTRUCTION:** every improvement in the final JSON must refer to a file and line present in the diff. \
Drop any initial suggestion about code outside the diff.

Output only the final JSON object; do not describe the critique. Wrap identifiers in backticks inside comments.

**Full Context:**
{summary}

**Initial Review to Critique:**
```json
{initial_review}
```

**Original Code Diff:**
```diff
{diff}
```
"""

TEST_SUGGESTIONS_PROMPT = """**Act as a senior Quality Assurance engineer.**
From the context and code changes below, propose the test cases needed to show the change is correct, \
robust and free of regressions.

Group them as "unitTests", "integrationTests" and "manualChecks". Each entry is one concise sentence stating \
the action and the expected outcome. Wrap identifiers in backticks.

Respond with a JSON object that follows the provided schema.

**Full Context:**
{summary}

**Code Diff to Analyze:**
```diff
{diff}
```
"""

FIX_PROMPT = """You are an expert software engineer. Write a precise, actionable prompt for an AI coding \
assistant (such as GitHub Copilot) that makes it fix the review finding below.

The prompt must be self-contained: explain what needs to change and why, using the finding and the code snippet.

**Output only the text of the prompt, nothing else.**
---
{details}
"""

FIX_DETAILS = """**Code Review Details:**
- **File:** `{file}`
- **Line:** {line}
- **Category:** {category}
- **Suggestion:** {comment}

**Relevant Code Snippet:**
```
{snippet}
```"""

FIX_TRAILER = """{answer}

---
**Context for the fix:**

{details}"""

TEST_PROMPT = """You are an expert Quality Assurance engineer. Write a precise, actionable prompt for an AI \
coding assistant (such as GitHub Copilot) that makes it implement the test case below.

The prompt must be self-contained: say what the test checks, what it needs, and where it should live if that \
can be inferred from the changes.

**Output only the text of the prompt, nothing else.**
---
**Test Case Details:**
- **Category:** {category}
- **Suggestion:** {suggestion}

**Overall PR Context:**
{summary}

**Code Diff:**
```diff
{diff}
```
"""

TEST_TRAILER = """{answer}

---
**Context for the test:**

**Test to create:**
- **Category:** {category}
- **Suggestion:** {suggestion}

**Pull Request Summary:**
{summary}"""
