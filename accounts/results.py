from dataclasses import dataclass


@dataclass(frozen=True)
class ActionResult:
    success: bool
    message: str = ""
    redirect: str = ""

    def as_dict(self):
        data = {"success": self.success}
        if self.message:
            data["message"] = self.message
        if self.redirect:
            data["redirect"] = self.redirect
        return data


def ok(message="", redirect=""):
    return ActionResult(True, message, redirect)


def fail(message):
    return ActionResult(False, message)


LOGIN_REQUIRED = "Please sign in first."
UNEXPECTED_ERROR = "Something went wrong while processing the request."
