# catalog/models/slugs.py

from django.utils.text import slugify


def unique_slug(model, source: str, *, instance_pk=None, max_length: int = 255) -> str:
    base = (slugify(source) or "item")[: max_length - 8]
    candidate = base
    i = 1
    qs = model.objects.all()
    if instance_pk is not None:
        qs = qs.exclude(pk=instance_pk)
    while qs.filter(slug=candidate).exists():
        i += 1
        candidate = f"{base}-{i}"
    return candidate
