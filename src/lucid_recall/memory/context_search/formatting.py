# renders a search result into a prompt block for the answer-generation step

from lucid_recall.memory.context_search.types import ChunkSource, ContextChunk, RecursiveSearchResult

# per-section caps, so one source cannot crowd the others out of the prompt
MAX_TURNS_IN_PROMPT = 10
MAX_FACTS_IN_PROMPT = 5
MAX_ENTRIES_IN_PROMPT = 3
MAX_SUMMARIES_IN_PROMPT = 3
ENTRY_PREVIEW_CHARS = 300

def format_context_for_prompt(result: RecursiveSearchResult) -> str:
    """
    Groups the ranked context by source and renders it between RETRIEVED CONTEXT markers.
    Returns an empty string when nothing was retrieved.
    """
    if not result.context:
        return ""

    sections: dict[ChunkSource, list[ContextChunk]] = {source: [] for source in ChunkSource}
    for chunk in result.context:
        sections[chunk.source].append(chunk)

    lines = ["", "", "--- RETRIEVED CONTEXT ---"]

    if sections[ChunkSource.TURN]:
        lines.extend(["", "Relevant conversation history:"])
        for chunk in sections[ChunkSource.TURN][:MAX_TURNS_IN_PROMPT]:
            role = chunk.metadata.get("role") or "unknown"
            lines.append(f"[{role}]: {chunk.content}")

    if sections[ChunkSource.FACT]:
        lines.extend(["", "Relevant facts about this user:"])
        for chunk in sections[ChunkSource.FACT][:MAX_FACTS_IN_PROMPT]:
            lines.append(f"- {chunk.content}")

    if sections[ChunkSource.ENTRY]:
        lines.extend(["", "Relevant library entries:"])
        for chunk in sections[ChunkSource.ENTRY][:MAX_ENTRIES_IN_PROMPT]:
            title = chunk.metadata.get("title") or "Untitled"
            lines.append(f'"{title}": {chunk.content[:ENTRY_PREVIEW_CHARS]}...')

    if sections[ChunkSource.SUMMARY]:
        lines.extend(["", "Relevant conversation summaries:"])
        for chunk in sections[ChunkSource.SUMMARY][:MAX_SUMMARIES_IN_PROMPT]:
            lines.append(chunk.content)

    lines.append("--- END CONTEXT ---")
    return "\n".join(lines) + "\n"
