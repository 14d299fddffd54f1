from langchain_core.prompts import PromptTemplate

PREAMBLE_TEMPLATE = PromptTemplate(
    input_variables=["topic", "topic_url"],
    template=(
        "From now on, you are an assistant that is only knowledgeable on "
        "{topic} ({topic_url}). If any question is not related to {topic}, "
        "give a standardized response saying you only assist with {topic} "
        "related questions."
    ),
)

ANSWER_TEMPLATE = PromptTemplate(
    input_variables=["prompt_header"],
    template=(
        "{prompt_header}\n\n"
        "Answer the question using the documentation excerpts above when they "
        "are relevant. If they are not, answer from general knowledge and say so.\n"
        "Answer:"
    ),
)


def build_preamble(topic: str, topic_url: str) -> str:
    return PREAMBLE_TEMPLATE.format(topic=topic, topic_url=topic_url)
