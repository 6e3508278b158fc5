# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single resource:
#
#   article_service     — create / list / detail / view / delete for Article
#   comment_service     — anonymous comments on an Article
#   category_service    — create / rename / delete for Category
#   quote_service       — quotes with soft delete
#   hero_service        — hero banners with remote images
#   photography_service — gallery uploads, listing, batch delete
#
# Shared building blocks:
#
#   identifiers — id / sequence id / slug resolution
#   sequence    — ``<partition>-<n>`` reservation
#   slugs       — title → slug normalisation
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as ``cms_api.errors``
# exceptions; routers never build error responses themselves.
