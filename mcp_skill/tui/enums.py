from enum import Enum

from mcp_skill.models import UpdateStatus


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


UPDATE_STATUS_STYLE = {
    UpdateStatus.UPDATED: UIStyle.GREEN.value,
    UpdateStatus.LATEST: UIStyle.DIM.value,
    UpdateStatus.NOT_IN_REGISTRY: UIStyle.YELLOW.value,
    UpdateStatus.FAILED: UIStyle.RED.value,
}

UPDATE_STATUS_LABEL = {
    UpdateStatus.UPDATED: "updated",
    UpdateStatus.LATEST: "already latest",
    UpdateStatus.NOT_IN_REGISTRY: "not in registry",
    UpdateStatus.FAILED: "failed",
}
