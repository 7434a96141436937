"""
Prompt building for AIME.

``PromptBuilder`` concatenates labeled sections (question, context, free
text, titled sections) in the order they are added and appends the
accumulated instructions as a final "## Instructions" section.
``PromptTemplates`` returns builders pre-configured for the bundled
generation helpers.
"""

from typing import List, Optional


class PromptBuilder:
    """
    Builds a prompt from ordered components.

    Every ``add_*`` method returns the builder so calls can be chained:

        prompt = PromptBuilder().add_question("When?").add_context(notes).build()
    """

    def __init__(self):
        self.components: List[str] = []
        self.instructions: List[str] = []

    def add_section(self, title: str, content: str) -> "PromptBuilder":
        """Add a titled section rendered as a markdown heading."""
        self.components.append(f"## {title}\n{content}")
        return self

    def add_text(self, text: str) -> "PromptBuilder":
        self.components.append(text)
        return self

    def add_question(self, question: str) -> "PromptBuilder":
        self.components.append(f"Question: {question}")
        return self

    def add_context(self, context: str) -> "PromptBuilder":
        self.components.append(f"Context:\n{context}")
        return self

    def add_instruction(self, instruction: str) -> "PromptBuilder":
        """Queue an instruction; instructions are always rendered last."""
        self.instructions.append(instruction)
        return self

    def build(self) -> str:
        """
        Render the final prompt.

        Returns:
            Components separated by blank lines, followed by the instructions section if any
        """
        prompt = "\n\n".join(self.components)

        if self.instructions:
            prompt += "\n\n## Instructions\n" + "\n".join(self.instructions)

        return prompt


class PromptTemplates:
    """Pre-configured builders for common tasks."""

    @staticmethod
    def question_answer(question: str, context: str) -> PromptBuilder:
        return (
            PromptBuilder()
            .add_question(question)
            .add_context(context)
            .add_instruction("Answer clearly and concisely using only the provided context.")
        )

    @staticmethod
    def summary(text: str, style: Optional[str] = None) -> PromptBuilder:
        builder = PromptBuilder().add_section("Text to summarize", text)
        if style:
            builder.add_instruction(f"Summary style: {style}")
        builder.add_instruction("Write a concise and informative summary.")
        return builder

    @staticmethod
    def action_items(text: str) -> PromptBuilder:
        return (
            PromptBuilder()
            .add_section("Text to analyze", text)
            .add_instruction("Extract every action item (tasks, actions to take) from the text.")
            .add_instruction("Return a clear, structured list.")
        )

    @staticmethod
    def timeline(text: str) -> PromptBuilder:
        return (
            PromptBuilder()
            .add_section("Text to analyze", text)
            .add_instruction("Extract every milestone, important date and event to build a timeline.")
            .add_instruction("Include dates, responsible people and statuses when mentioned.")
        )
