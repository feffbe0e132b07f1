import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import schemas, models, auth
from ..database import get_db
from ..errors import Conflict, NotFound, Unauthorized, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def find_user_by_email(db: Session, email: str):
    return (
        db.query(models.User)
        .filter(models.User.email == auth.normalize_email(email))
        .first()
    )


def check_password_policy(password: str) -> None:
    if not auth.ENFORCE_PASSWORD_POLICY:
        return
    problem = auth.password_policy_error(password)
    if problem:
        raise ValidationError(problem)


@router.post(
    "/signup",
    response_model=schemas.UserOut,
    status_code=status.HTTP_201_CREATED,
)
def sign_up(
    user_in: schemas.SignUpIn,
    response: Response,
    db: Session = Depends(get_db),
):
    if not user_in.full_name or not user_in.email or not user_in.password:
        raise ValidationError("fullName, email and password are required")

    if find_user_by_email(db, user_in.email):
        raise Conflict("User already exists")

    check_password_policy(user_in.password)

    user = models.User(
        full_name=user_in.full_name,
        email=auth.normalize_email(user_in.email),
        password_hash=auth.get_password_hash(user_in.password),
        role="user",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent sign-up with the same email.
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(user)
    logger.info("Created user %s", user.id)

    auth.issue_session(response, user)
    return user


@router.post("/signin", response_model=schemas.UserOut)
def sign_in(
    creds: schemas.SignInIn,
    response: Response,
    db: Session = Depends(get_db),
):
    if not creds.email or not creds.password:
        raise ValidationError("Email and password are required")

    user = find_user_by_email(db, creds.email)
    if not user or not auth.verify_password(creds.password, user.password_hash):
        raise Unauthorized("user does not have an account")

    auth.issue_session(response, user)
    return user


@router.post("/signout", response_model=schemas.MessageOut)
def sign_out(response: Response):
    auth.clear_auth_cookie(response)
    return {"message": "Signed out"}


@router.get("/me", response_model=schemas.UserOut)
def get_me(current_user: models.User = Depends(auth.get_current_user)):
    return current_user


@router.put("/profile", response_model=schemas.UserOut)
def update_profile(
    profile_in: schemas.ProfileUpdateIn,
    db: Session = Depends(get_db),
):
    if not profile_in.user_id:
        raise ValidationError("User ID is required")

    user = db.get(models.User, profile_in.user_id)
    if not user:
        raise NotFound("User not found")

    updates = profile_in.model_dump(exclude_unset=True, exclude={"user_id"})
    for field in ("first_name", "last_name"):
        if field in updates and updates[field] is not None:
            updates[field] = updates[field].strip()
    if updates.get("email") is not None:
        email = auth.normalize_email(updates["email"])
        owner = find_user_by_email(db, email)
        if owner and owner.id != user.id:
            raise Conflict("Email already in use")
        updates["email"] = email
    elif "email" in updates:
        # email is required on the record; an explicit null leaves it alone
        del updates["email"]

    for field, value in updates.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user


@router.put("/password", response_model=schemas.MessageOut)
def change_password(
    change_in: schemas.PasswordChangeIn,
    db: Session = Depends(get_db),
):
    if not change_in.user_id or not change_in.current_password or not change_in.new_password:
        raise ValidationError(
            "User ID, current password, and new password are required"
        )

    user = db.get(models.User, change_in.user_id)
    if not user:
        raise NotFound("User not found")

    if not auth.verify_password(change_in.current_password, user.password_hash):
        raise Unauthorized("Current password is incorrect")

    check_password_policy(change_in.new_password)

    user.password_hash = auth.get_password_hash(change_in.new_password)
    db.commit()
    logger.info("Password changed for user %s", user.id)
    return {"message": "Password updated successfully"}
