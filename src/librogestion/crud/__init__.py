from .crud_author import (
    create_author,
    get_author,
    get_authors,
    update_author,
    soft_delete_author,
    restore_author,
    delete_author,
)
from .crud_genre import (
    create_genre,
    get_genre,
    get_genre_by_name,
    get_genres,
    update_genre,
    soft_delete_genre,
    restore_genre,
    delete_genre,
)
from .crud_publisher import (
    create_publisher,
    get_publisher,
    get_publisher_by_name,
    get_publishers,
    update_publisher,
    soft_delete_publisher,
    restore_publisher,
    delete_publisher,
)
from .crud_book import (
    create_book,
    get_book,
    get_book_by_isbn,
    get_books,
    search_books,
    update_book,
    add_author_to_book,
    remove_author_from_book,
    soft_delete_book,
    restore_book,
    delete_book,
)
from .crud_member import (
    create_member,
    get_member,
    get_member_by_email,
    get_members,
    update_member,
    update_member_status,
    soft_delete_member,
    restore_member,
    delete_member,
)

__all__ = [
    "create_author",
    "get_author",
    "get_authors",
    "update_author",
    "soft_delete_author",
    "restore_author",
    "delete_author",
    "create_genre",
    "get_genre",
    "get_genre_by_name",
    "get_genres",
    "update_genre",
    "soft_delete_genre",
    "restore_genre",
    "delete_genre",
    "create_publisher",
    "get_publisher",
    "get_publisher_by_name",
    "get_publishers",
    "update_publisher",
    "soft_delete_publisher",
    "restore_publisher",
    "delete_publisher",
    "create_book",
    "get_book",
    "get_book_by_isbn",
    "get_books",
    "search_books",
    "update_book",
    "add_author_to_book",
    "remove_author_from_book",
    "soft_delete_book",
    "restore_book",
    "delete_book",
    "create_member",
    "get_member",
    "get_member_by_email",
    "get_members",
    "update_member",
    "update_member_status",
    "soft_delete_member",
    "restore_member",
    "delete_member",
]
