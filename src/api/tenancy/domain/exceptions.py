"""Domain exceptions for the tenancy bounded context."""


class CompanyAccessDeniedError(Exception):
    """Raised when a user switches to a company they are not a member of."""

    def __init__(self, user_id: str, company_id: str):
        super().__init__(f"User {user_id} cannot act for company {company_id}")
        self.user_id = user_id
        self.company_id = company_id
