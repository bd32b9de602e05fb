import enum


class Role(str, enum.Enum):
    STUDENT = "student"
    LECTURER = "lecturer"
    ADMIN = "admin"

    @classmethod
    def of(cls, value: "Role | str") -> "Role":
        return value if isinstance(value, cls) else cls(value)
