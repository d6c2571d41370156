from django.http import JsonResponse


def health_check(request):
    """Liveness probe for the load balancer."""
    return JsonResponse({'status': 'ok'})


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'error': 'Not found',
        'code': 'not_found'
    }, status=404)


def error_500(request):
    """
    Custom 500 handler.

    The traceback is already logged by ``django.request``; clients only get
    an opaque body.
    """
    return JsonResponse({
        'error': 'Internal server error',
        'code': 'internal_error'
    }, status=500)
