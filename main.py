import asyncio

import httpx
import uvicorn

from codeflow.api import app
from codeflow.config import Settings, configure_logging


async def send_mock_requests(base_url: str):
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(f"{base_url}/auth/demo")
        screen = response.json()
        print(f"Demo login: {response.status_code} - {screen['user']}")
        print(f"Projects: {[p['name'] for p in screen['sidebar']['projects']]}")

        response = await client.post(
            f"{base_url}/tasks",
            json={
                "title": "Audit dependency licences",
                "desc": "Check every third-party package",
                "priority": "high",
                "status": "todo",
                "tags": "legal, deps",
            },
        )
        print(f"Create task: {response.status_code} - {response.json()}")
        task_id = response.json()["id"]

        response = await client.post(f"{base_url}/drag/start", json={"task_id": task_id})
        print(f"Drag start: {response.status_code}")

        response = await client.post(f"{base_url}/drag/drop", json={"status": "inprogress"})
        print(f"Drop on In Progress: {response.status_code} - {response.json()}")

        response = await client.get(f"{base_url}/board", params={"search": "crypto"})
        counts = {c["label"]: c["count"] for c in response.json()}
        print(f"Board filtered by 'crypto': {response.status_code} - {counts}")

        response = await client.get(f"{base_url}/backlog")
        print(f"Backlog: {response.status_code} - {len(response.json())} rows")

        response = await client.get(f"{base_url}/activity")
        for item in response.json()[:3]:
            print(f"  {item['user']} {item['action']} {item['target']} ({item['time_ago']})")


async def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    )

    async def run_server():
        await server.serve()

    server_task = asyncio.create_task(run_server())

    await asyncio.sleep(2)

    await send_mock_requests(f"http://{settings.host}:{settings.port}")

    server.should_exit = True
    await server_task


if __name__ == "__main__":
    asyncio.run(main())
