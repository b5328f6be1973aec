# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Enriched text builder.

The vector of an entity is computed from its content prefixed with a short
header (identifier, category label, title) so that queries naming the
article or the legal field land near it:

    Article 1240 du Code civil. Catégorie: Responsabilité civile. Titre: ...

    <content>
"""

from juris_rag.services.errors import MalformedEntityError
from juris_rag.services.models import CaseLawDecision, LegalEntity, MethodologyResource, StatuteArticle

# Raw statute category slugs -> readable labels
CATEGORY_LABELS: dict[str, str] = {
    "responsabilite": "Responsabilité civile",
    "contrats": "Droit des contrats",
    "propriete": "Droit de la propriété",
    "obligations": "Droit des obligations",
    "vente": "Vente",
    "general": "Dispositions générales",
}


def category_label(category: str | None) -> str | None:
    if not category:
        return None
    return CATEGORY_LABELS.get(category.strip().lower(), category)


def _statute_header(article: StatuteArticle) -> list[str]:
    first = f"Article {article.identifier}"
    if article.scope:
        first += f" du {article.scope}" if article.scope.startswith("Code") else f" ({article.scope})"
    parts = [first]
    label = category_label(article.category)
    if label:
        parts.append(f"Catégorie: {label}")
    if article.section_path:
        parts.append(f"Section: {article.section_path}")
    if article.title:
        parts.append(f"Titre: {article.title}")
    return parts


def _case_law_header(decision: CaseLawDecision) -> list[str]:
    first = f"Décision n° {decision.identifier}"
    details = [d for d in (decision.scope, decision.date) if d]
    if details:
        first += f" ({', '.join(details)})"
    parts = [first]
    if decision.category:
        parts.append(f"Catégorie: {decision.category}")
    if decision.title:
        parts.append(f"Titre: {decision.title}")
    return parts


def _methodology_header(resource: MethodologyResource) -> list[str]:
    kind = resource.resource_type or "ressource"
    parts = [f"Méthodologie ({kind}): {resource.identifier}"]
    categories = [c for c in (resource.category, resource.subcategory) if c]
    if categories:
        parts.append(f"Catégorie: {' / '.join(categories)}")
    if resource.level:
        parts.append(f"Niveau: {resource.level}")
    if resource.keywords:
        parts.append(f"Mots-clés: {', '.join(resource.keywords)}")
    return parts


def build_enriched_text(entity: LegalEntity) -> str:
    """
    Header + content text sent to the embedding provider.

    Raises:
        MalformedEntityError: the entity has no content to embed
    """
    content = (entity.content or "").strip()
    if not content:
        raise MalformedEntityError(entity.id, "empty content")

    if isinstance(entity, StatuteArticle):
        header = _statute_header(entity)
    elif isinstance(entity, CaseLawDecision):
        header = _case_law_header(entity)
    elif isinstance(entity, MethodologyResource):
        header = _methodology_header(entity)
    else:
        header = [entity.identifier] if entity.identifier else []

    if not header:
        return content
    return ". ".join(header) + "\n\n" + content
