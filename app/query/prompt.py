from __future__ import annotations

_MOBILE_FORMAT_INSTRUCTIONS = "\n".join(
    [
        "Please format your response as a JSON object with the following structure:",
        "{",
        '  "summary_points": ["bullet point 1", "bullet point 2", "bullet point 3"],',
        '  "detailed_flow": "Brief explanation that expands on the key points",',
        '  "confidence": 0.85',
        "}",
        "",
        "Keep responses concise for mobile viewing (small screens). Use 3-5 bullet points "
        "maximum, each under 15 words. The detailed explanation should be 2-3 sentences "
        "maximum.",
    ]
)


def build_mobile_prompt(prompt: str) -> str:
    """
    Append the mobile JSON answer format to a caller prompt.

    The normalizer does not rely on the model honoring these instructions; it only makes
    the structured (JSON) path more likely than the text heuristic.
    """

    return f"{prompt}\n\n{_MOBILE_FORMAT_INSTRUCTIONS}"
