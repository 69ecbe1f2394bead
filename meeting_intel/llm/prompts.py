"""
Prompt templates for insight extraction, summaries and meeting Q&A.
"""

from __future__ import annotations

from typing import List

INSIGHTS_PROMPT = """Analyze the following meeting transcript and extract structured information.

Return a JSON object with the following structure:
{{
  "actionItems": [
    {{
      "description": "Clear description of the action item",
      "priority": "high" | "medium" | "low",
      "due_date": "YYYY-MM-DD or null if not mentioned"
    }}
  ],
  "decisions": [
    {{
      "decision_text": "The decision that was made",
      "context": "Context or reasoning behind the decision",
      "tags": ["relevant", "topic", "tags"]
    }}
  ],
  "topics": ["main topics discussed in the meeting"]
}}

Guidelines:
- Extract all actionable tasks mentioned
- Identify clear decisions that were made
- Set priority based on urgency mentioned
- Extract dates if mentioned, otherwise leave null
- Keep topics concise (1-3 words each)
- Be concise but complete

Transcript:
{transcript}

Return ONLY valid JSON, no markdown or additional text."""


SUMMARY_PROMPT = """Summarize the following meeting transcript in 2-3 concise paragraphs.
Focus on key discussion points, decisions made, and next steps.

Transcript:
{transcript}"""


ANSWER_PROMPT = """You are an AI assistant that answers questions about meetings based on transcript content.

Use ONLY the following meeting transcript excerpts to answer the question. If the information is not in the provided context, say so clearly.

Context from meeting transcripts:
{context}

Question: {question}

Instructions:
- Answer concisely and accurately based on the provided context
- If multiple sources discuss the topic, synthesize the information
- If the context doesn't contain enough information, acknowledge this
- Do not make up information not present in the context
- Keep the answer focused and relevant

Answer:"""


SUGGESTED_QUESTIONS_PROMPT = """Based on these recent meeting summaries, suggest 5 relevant questions a user might want to ask about their meetings.

Meeting summaries:
{summaries}

Return ONLY a JSON array of question strings, no markdown or other text.
Example: ["Question 1?", "Question 2?", "Question 3?", "Question 4?", "Question 5?"]"""


def build_insights_prompt(transcript: str) -> str:
    return INSIGHTS_PROMPT.format(transcript=transcript)


def build_summary_prompt(transcript: str) -> str:
    return SUMMARY_PROMPT.format(transcript=transcript)


def build_context(chunks: List[str]) -> str:
    """Label each chunk as [Source n] so the answer can cite it."""
    return "\n\n".join(f"[Source {i}]\n{chunk}" for i, chunk in enumerate(chunks, start=1))


def build_answer_prompt(question: str, chunks: List[str]) -> str:
    return ANSWER_PROMPT.format(context=build_context(chunks), question=question)


def build_suggested_questions_prompt(summaries: List[str]) -> str:
    return SUGGESTED_QUESTIONS_PROMPT.format(summaries="\n\n".join(summaries))
