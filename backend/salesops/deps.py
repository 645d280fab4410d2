import os
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from salesops.services.workflow import SalesWorkflow

SECRET_KEY = os.getenv("SECRET_KEY", "dev_change_me")
ALGO = "HS256"
_bearer = HTTPBearer()

async def get_current_user(creds: HTTPAuthorizationCredentials = Depends(_bearer)):
    # tokens are issued by the auth service; only verified here
    token = creds.credentials
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGO])
        email = payload.get("sub")
        if not email:
            raise HTTPException(status_code=401, detail="Invalid token payload")
        return {"email": email}
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

def get_workflow(request: Request) -> SalesWorkflow:
    return request.app.state.workflow
