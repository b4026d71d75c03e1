# tenders/exceptions.py

from rest_framework import status
from rest_framework.exceptions import APIException


class TenderError(APIException):
    """
    Base class for tender and bid workflow failures.

    Each subclass carries its own HTTP status, a stable ``default_code``
    that clients can switch on, and a message a person can act on.
    Raising one inside ``transaction.atomic()`` rolls the unit of work back.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The tender operation could not be completed.'
    default_code = 'tender_error'


class NotFound(TenderError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class Forbidden(TenderError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to perform this action.'
    default_code = 'forbidden'


class InvalidState(TenderError):
    default_detail = 'This action is not allowed at the current stage.'
    default_code = 'invalid_state'


class DeadlinePassed(TenderError):
    default_detail = 'The bidding deadline has passed.'
    default_code = 'deadline_passed'


class DuplicateBid(TenderError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'You already have an active bid on this tender. Revise it instead.'
    default_code = 'duplicate_bid'


class AlreadyAwarded(TenderError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This tender has already been awarded.'
    default_code = 'already_awarded'


class ConflictRetry(TenderError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The tender was changed by another request. Reload and try again.'
    default_code = 'conflict_retry'
