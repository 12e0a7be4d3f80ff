from __future__ import annotations

import os
import uuid

from dynax_py import (
    ConditionBuilder,
    KeyField,
    KeySchema,
    Repository,
    Settings,
    TransactionalWriter,
    UpdateBuilder,
    WriteUnit,
    create_dynamodb_client,
    ensure_table,
)


def main() -> None:
    settings = Settings.from_env(
        {"DYNAMODB_ENDPOINT": "http://localhost:8000", "AWS_REGION": "us-east-1", **os.environ}
    )
    client = create_dynamodb_client(settings)
    schema = KeySchema(
        f"dynax_py_example_{uuid.uuid4().hex[:12]}",
        KeyField("pk", "string"),
        KeyField("sk", "number"),
    )
    ensure_table(schema, client)

    try:
        repo = Repository(schema, client=client, settings=settings)

        repo.put({"pk": "A", "sk": 1, "value": 1}, condition=ConditionBuilder().not_exists("pk"))
        repo.batch_write([{"pk": "A", "sk": n, "value": n} for n in range(2, 60)])

        print("get:", repo.get({"pk": "A", "sk": 1}))
        print(
            "update:",
            repo.update(
                UpdateBuilder().increment("value", by=10).set("state", "bumped"),
                {"pk": "A", "sk": 1},
                condition=ConditionBuilder().exists("pk"),
            ),
        )

        page = repo.query(ConditionBuilder().eq("pk", "A").and_().lt("sk", 5))
        print("query sk < 5:", page.items)

        token = TransactionalWriter(client).write(
            [
                WriteUnit(schema, {"pk": "B", "sk": 1, "value": 0}),
                WriteUnit(schema, {"pk": "B", "sk": 2, "value": 0}),
            ]
        )
        print("transaction token:", token)
    finally:
        client.delete_table(TableName=schema.container_name)


if __name__ == "__main__":
    main()
