from pathlib import Path

from notary.summarization.exceptions import SummarizationError

_DEFAULT_PROMPT_PATH = Path(__file__).parent / "prompts" / "summary_prompt.txt"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the summary prompt template containing a ``{document_text}`` placeholder.

    Raises:
        SummarizationError: if the file cannot be read.
    """
    try:
        return (path or _DEFAULT_PROMPT_PATH).read_text(encoding="utf-8")
    except OSError as exc:
        raise SummarizationError(f"Failed to load prompt template: {exc}") from exc
