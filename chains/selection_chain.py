# chains/selection_chain.py
# ------------------------------------------------------------
# Selection Chain
# - prompt text -> llm (tools bound) -> AIMessage (tool_calls)
# ------------------------------------------------------------

from langchain_core.prompts import ChatPromptTemplate

# 프롬프트 본문은 classifier가 완성해서 넘김 (사용자 입력의 중괄호가 템플릿으로 해석되지 않도록)
SELECTION_PROMPT = ChatPromptTemplate.from_messages([("human", "{prompt}")])


def build_selection_chain(llm, tools):
    """
    Selection chain: 프롬프트 -> function calling LLM
    반환값은 파싱 전 AIMessage 이다.
    """
    return SELECTION_PROMPT | llm.bind_tools(tools, tool_choice="auto")
