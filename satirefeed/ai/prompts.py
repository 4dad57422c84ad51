"""
Prompt Templates
================

Pure functions building the instruction text for summarization, post
generation and language detection. Output depends only on the arguments.
"""

from ..models import POSTS_PER_BATCH

SUMMARY_MAX_CHARS = 600
POST_MAX_CHARS = 250
LANGUAGE_SAMPLE_CHARS = 500

POST_SYSTEM_PROMPT = (
    "You are a world-class comedy writer and satirist, known for your razor-sharp wit "
    "and ability to find the absurdity in serious news. Your style is akin to a head "
    "writer for a late-night comedy show, blending intellectual humor with cutting "
    "commentary."
)

EUROPEAN_PORTUGUESE = "European Portuguese"

EUROPEAN_PORTUGUESE_MANDATE = (
    "Use European Portuguese spelling, grammar, and vocabulary. "
    "You MUST NOT use Brazilian Portuguese variants under any circumstances."
)

JSON_ENVELOPE_MANDATE = (
    "You MUST reply with a valid JSON object. The object must contain a single key "
    f"called \"tweets\", which is an array of exactly {POSTS_PER_BATCH} strings. "
    "Do not include any other text or explanation. "
    "Example: {\"tweets\": [\"First tweet...\", \"Second tweet...\"]}"
)


def is_portuguese(language: str) -> bool:
    """Whether the language name refers to any Portuguese variant."""
    return "portuguese" in (language or "").lower()


def resolve_target_language(language: str) -> str:
    """Map the requested language to the one we actually write in.

    Any Portuguese variant is forced to European Portuguese.
    """
    if is_portuguese(language):
        return EUROPEAN_PORTUGUESE
    return language


def build_language_directive(language: str, subject: str = "summary") -> str:
    """Sentence instructing the model which language to write ``subject`` in."""
    if is_portuguese(language):
        return (
            f"The {subject} MUST be written in {EUROPEAN_PORTUGUESE}. "
            f"{EUROPEAN_PORTUGUESE_MANDATE}"
        )
    return f"The {subject} MUST be written in {language}."


def build_summary_prompt(content: str, language: str) -> str:
    """Build the summarization prompt.

    Args:
        content: Article text, optionally followed by search context
        language: Target language name

    Returns:
        Prompt text
    """
    directive = build_language_directive(language, "summary")
    return (
        "Summarize the following text into a concise and informative paragraph, "
        f"keeping the summary under {SUMMARY_MAX_CHARS} characters. {directive} "
        "Focus on the key points and main narrative.\n\n"
        f'Text:\n"""{content}"""'
    )


def build_post_prompt(summary: str, language: str, require_json_envelope: bool) -> str:
    """Build the satirical post generation prompt.

    Args:
        summary: Article summary to riff on
        language: Target language name
        require_json_envelope: Append an explicit JSON reply mandate, for
            backends that cannot enforce a response schema themselves

    Returns:
        Prompt text
    """
    target_language = resolve_target_language(language)
    portuguese_instruction = (
        f" {EUROPEAN_PORTUGUESE_MANDATE}" if is_portuguese(language) else ""
    )

    guidelines = [
        "**Satirical Tone:** Convert the news into sharply satirical, "
        "comedy-writer-worthy tweets.",
        "**Technique:** Masterfully blend sharp-edged, clever wordplay and unexpected "
        "perspectives to highlight the absurdity within the topic.",
        "**Humor Style:** The comedic edge must resonate with users who crave "
        "intellectual humor. Use wit, irony, and clever observations.",
        f"**Format:** Each tweet must be under {POST_MAX_CHARS} characters. Aim for "
        "crisp, cutting, and memorable tweets.",
        f"**Language Mandate:** The tweets MUST be written exclusively in "
        f"{target_language}.{portuguese_instruction}",
        "**Use Emojis:** Sparingly use 1-2 relevant emojis per tweet to amplify the "
        "satire or irony. The emojis should be clever and add to the comedic effect, "
        "not just decorate the text.",
        "**Hashtags:** Do NOT include any hashtags (e.g., #news, #politics).",
    ]
    if require_json_envelope:
        guidelines.append(f"**Output Format Mandate:** {JSON_ENVELOPE_MANDATE}")

    numbered = "\n".join(
        f"{index}.  {line}" for index, line in enumerate(guidelines, start=1)
    )

    return (
        f"Based on the following news summary, generate {POSTS_PER_BATCH} distinct tweets.\n\n"
        "**Summary:**\n"
        f'"""\n{summary}\n"""\n\n'
        "**Your Task & Strict Guidelines:**\n"
        f"{numbered}\n"
    )


def build_language_detection_prompt(content: str) -> str:
    """Ask for the name of the language ``content`` is written in."""
    sample = (content or "")[:LANGUAGE_SAMPLE_CHARS]
    return (
        "What language is the following text written in? Respond with only the name "
        'of the language (e.g., "English", "Portuguese").\n\n'
        f'Text:\n"""{sample}"""'
    )
