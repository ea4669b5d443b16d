# task types accepted by the Gemini embedding API
# ref: https://ai.google.dev/gemini-api/docs/embeddings#task-types

VALID_GEMINI_TASK_TYPES: frozenset[str] = frozenset({
    "SEMANTIC_SIMILARITY",
    "CLASSIFICATION",
    "CLUSTERING",
    "RETRIEVAL_DOCUMENT",
    "RETRIEVAL_QUERY",
    "CODE_RETRIEVAL_QUERY",
    "QUESTION_ANSWERING",
    "FACT_VERIFICATION",
})
