import click

CONFIRM_WORD = "yes"


def confirm_yes(prompt: str) -> bool:
    """Read one line; only the literal word ``yes`` confirms."""
    try:
        answer = click.prompt(prompt, default="", show_default=False, prompt_suffix="")
    except click.Abort:
        return False
    return answer.strip().lower() == CONFIRM_WORD
