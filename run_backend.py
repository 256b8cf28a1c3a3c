import uvicorn

if __name__ == "__main__":
    # Run the FastAPI app using uvicorn
    # reload=True enables auto-reload on code changes
    uvicorn.run("torque_limiter.main:app", host="0.0.0.0", port=8000, reload=True)
