from pathlib import Path

from greenintellect.analysis.exceptions import ConfigurationError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the greenwashing analysis prompt template from a file.

    Args:
        path: Path to the prompt template file.
              Defaults to the bundled greenwashing_prompt.txt.

    Returns:
        The raw template string with str.format placeholders.

    Raises:
        ConfigurationError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "greenwashing_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Failed to load prompt template: {exc}") from exc
