# services/knowledge/prompts.py

UNKNOWN_TOPIC = "Unknown"

LANGUAGE_NAMES = {
    "en": "English",
    "ko": "Korean (한국어)",
    "ja": "Japanese",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
}

SYSTEM_PROMPT = "You are the AI librarian of a science learning platform. You always answer with a single JSON object."

TOPIC_PROMPT_TEMPLATE = """
Task: Extract the core topic from the user input "{query}" and explain it so that a beginner can follow.
Language: Write every text field in **{language_name}**.

Output a single JSON object with these keys:
- "topic": the core topic as a short noun phrase taken from the input
  (e.g. "What is a black hole?" -> "Black Hole", "블랙홀이 뭐야?" -> "블랙홀").
- "canonicalName": the standard English name of the topic, used as a stable key
  (e.g. "블랙홀" -> "Black Hole").
- "title": a display title in {language_name}.
- "tags": 1-4 broad category labels in English (e.g. ["Astronomy", "Physics"]).
- "content": a Markdown article of about 200 words. Wrap 3-5 important related
  concepts in double brackets like [[Event Horizon]].
- "chatResponse": one or two friendly sentences answering the user directly.

If the input is not a question about a concept (greetings, unrelated commands,
gibberish), set "topic" to "{unknown}", leave "content" as a short polite reply,
and answer the user in "chatResponse".
"""


def build_topic_prompt(query: str, language: str) -> str:
    language_name = LANGUAGE_NAMES.get(language, language)
    return TOPIC_PROMPT_TEMPLATE.format(query=query, language_name=language_name, unknown=UNKNOWN_TOPIC)
