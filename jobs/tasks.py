from django_rq import job

from .status import run_all


@job("default")
def update_statuses():
    return run_all().as_dict()
