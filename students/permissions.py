import logging

from .models import ParentStudentLink

logger = logging.getLogger(__name__)


def parent_can_view_student(parent, student) -> bool:
    if parent is None or student is None:
        return False
    has_link = ParentStudentLink.objects.filter(parent=parent, student=student).exists()
    if not has_link:
        logger.warning(
            "Permission denied: parent %s has no link to student %s", parent.uid, student.pk
        )
    return has_link


def get_linked_student(parent_uid, route_id):
    """The student behind ``route_id`` if the parent is linked to it.

    Returns None both when the student does not exist and when it is not
    linked, so callers cannot tell the two apart.
    """
    from accounts import directory

    parent = directory.get_parent(parent_uid)
    if parent is None:
        return None
    student = directory.get_student_by_route_id(route_id)
    if not parent_can_view_student(parent, student):
        return None
    return student
