# board/templatetags/content_tags.py

from django import template

from board.content import ContentFormatter, RenderContext

register = template.Library()


@register.simple_tag(takes_context=True)
def format_content(context, value, **options):
    """Template tag rendering forum markup with the template's request."""
    render_context = RenderContext.from_request(
        context.get("request"),
        user_lookup=context.get("user_lookup"),
    )
    return ContentFormatter(render_context).format_content(value, options)


@register.filter(name="quote_content")
def quote_content_filter(value):
    return ContentFormatter.quote_content(value or "")
