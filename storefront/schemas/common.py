from pydantic import BaseModel


# Pagination block returned next to list payloads
class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


def paginate(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=(total + limit - 1) // limit)
