"""
commands/capabilities.py
============================================================
기본 capability 정의

등록 순서: test -> flashcard -> course_search -> career_path
(recovery 휴리스틱에서 여러 capability가 동시에 매칭되면 이 순서가 이김)
"""

from commands.registry import CapabilityRegistry
from schemas.capability import Capability, ParameterSpec

# ============================================================
# 노트 기반 capability (노트 참조가 반드시 필요)
# ============================================================
TEST = Capability(
    id="test",
    function_name="generate_test",
    description=(
        "Generate a test or quiz from a note. Requires a note reference "
        "(a mention like @[note name] or the note the user is viewing)."
    ),
    keywords=["test", "quiz", "exam", "questions", "assessment"],
    examples=[
        "turn @[note] into a test",
        "make a quiz from @[note]",
        "generate practice questions for @[note]",
    ],
    parameters=[
        ParameterSpec(name="noteId", required=True, description="The ID of the note to generate a test from"),
        ParameterSpec(name="noteName", description="The name of the note"),
    ],
    required_context=["references"],
    reference_kind="note",
)

FLASHCARD = Capability(
    id="flashcard",
    function_name="generate_flashcard",
    description=(
        "Generate flashcards from a note. Requires a note reference "
        "(a mention like @[note name] or the note the user is viewing)."
    ),
    keywords=["flashcard", "flash card", "study cards", "memorization", "review cards"],
    examples=[
        "create flashcards from @[note]",
        "make study cards for @[note]",
        "flashcards for @[note]",
    ],
    parameters=[
        ParameterSpec(name="noteId", required=True, description="The ID of the note to generate flashcards from"),
        ParameterSpec(name="noteName", description="The name of the note"),
    ],
    required_context=["references"],
    reference_kind="note",
)

# ============================================================
# 검색/생성 capability (컨텍스트 불필요)
# ============================================================
COURSE_SEARCH = Capability(
    id="course_search",
    function_name="search_courses",
    description=(
        "Search for relevant courses based on career interests or academic requirements. "
        "Extract school and department only if explicitly mentioned in the user message."
    ),
    keywords=["course", "courses", "class", "classes", "curriculum", "program", "major", "department"],
    examples=[
        "recommend Stanford CS courses",
        "courses for AI career",
        "Berkeley Computer Science courses",
    ],
    parameters=[
        ParameterSpec(
            name="query",
            fill_from_message=True,
            required=True,
            description='The user\'s query about courses (e.g., "courses for AI career")',
        ),
        ParameterSpec(
            name="school",
            description="The university name (ONLY if explicitly mentioned in the message, otherwise omit)",
        ),
        ParameterSpec(
            name="department",
            description="The department or major (ONLY if explicitly mentioned in the message, otherwise omit)",
        ),
    ],
)

CAREER_PATH = Capability(
    id="career_path",
    function_name="generate_career_path",
    description=(
        "Generate a skill graph for a career path. ALWAYS extract both role and company "
        "from the user message, even if the phrasing is informal."
    ),
    keywords=["career", "job", "role", "position", "skill", "graph", "career path"],
    examples=[
        "I want to work as a fullstack engineer at OpenAI",
        "Show me skills needed for a software engineer at Google",
        "Career path for backend developer at Stripe",
    ],
    parameters=[
        ParameterSpec(
            name="role",
            required=True,
            description=(
                'The complete job role or title, e.g. "fullstack engineer", "ML engineer". '
                'Extract the full multi-word role, not just "engineer".'
            ),
        ),
        ParameterSpec(
            name="company",
            required=True,
            description='The company name without prepositions, e.g. "OpenAI" for "at OpenAI".',
        ),
        ParameterSpec(
            name="seniority",
            description='The seniority level ONLY if explicitly mentioned (e.g. "entry", "senior"), otherwise omit.',
        ),
        ParameterSpec(
            name="major",
            description='The major or discipline ONLY if explicitly mentioned (e.g. "CS"), otherwise omit.',
        ),
    ],
)

DEFAULT_CAPABILITIES = (TEST, FLASHCARD, COURSE_SEARCH, CAREER_PATH)


def build_default_registry() -> CapabilityRegistry:
    """기본 capability를 등록하고 seal한 레지스트리를 반환합니다."""
    registry = CapabilityRegistry()
    for capability in DEFAULT_CAPABILITIES:
        registry.register(capability)
    return registry.seal()
