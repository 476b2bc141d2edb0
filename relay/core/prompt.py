from langchain_core.prompts import PromptTemplate


SUMMARY_PROMPT = PromptTemplate.from_template(
    "Please briefly explain the contents of the following file:\n\n{content}"
)


def build_summary_prompt(content: str) -> str:
    return SUMMARY_PROMPT.format(content=content)
