from rest_framework.views import exception_handler

from tenders.exceptions import TenderError


def api_exception_handler(exc, context):
    """
    DRF's default handler, with workflow errors rendered as
    {"error": <message>, "code": <kind>} so clients can branch on the kind.
    """
    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, TenderError):
        response.data = {
            'error': str(exc.detail),
            'code': exc.get_codes(),
        }
    return response
