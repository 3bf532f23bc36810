# run.py

import uvicorn
import os

port = int(os.environ.get("PORT", 8000))

if __name__ == "__main__":
    uvicorn.run(
        "identity_api.main:app",
        host="0.0.0.0",  # Accept connections from any interface
        port=port,
        reload=False
    )
