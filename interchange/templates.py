"""Starter Mermaid diagrams offered to new sessions."""

from dataclasses import dataclass
from typing import Dict, List


@dataclass
class Template:
    id: str
    name: str
    description: str
    code: str
    type: str = 'mermaid'


TEMPLATES: List[Template] = [
    Template(
        id='flowchart-basic',
        name='Basic Flowchart',
        description='Simple flowchart with decision',
        code="""flowchart TD
    A[Start] --> B{Condition?}
    B -->|Yes| C[Action 1]
    B -->|No| D[Action 2]
    C --> E[End]
    D --> E""",
    ),
    Template(
        id='flowchart-process',
        name='Business Process',
        description='Multi-step process flow',
        code="""flowchart LR
    A[Request] --> B[Review]
    B --> C{Approved?}
    C -->|Yes| D[Processing]
    C -->|No| E[Rejected]
    D --> F[Completed]
    E --> G[Notify]""",
    ),
    Template(
        id='sequence-api',
        name='API Sequence',
        description='Sequence diagram for API calls',
        code="""sequenceDiagram
    participant C as Client
    participant S as Server
    participant DB as Database

    C->>S: GET /api/data
    S->>DB: SELECT * FROM data
    DB-->>S: Results
    S-->>C: JSON Response""",
    ),
    Template(
        id='sequence-auth',
        name='Authentication',
        description='User authentication flow',
        code="""sequenceDiagram
    actor U as User
    participant A as App
    participant Auth as Auth Service
    participant DB as Database

    U->>A: Login (email, password)
    A->>Auth: Validate credentials
    Auth->>DB: Check user
    DB-->>Auth: User data
    Auth-->>A: JWT Token
    A-->>U: Login success""",
    ),
    Template(
        id='class-mvc',
        name='MVC Class Diagram',
        description='Model-View-Controller architecture',
        code="""classDiagram
    class Controller {
        +handleRequest()
        +sendResponse()
    }
    class Model {
        -data
        +getData()
        +setData()
    }
    class View {
        +render()
        +update()
    }

    Controller --> Model
    Controller --> View
    View --> Model""",
    ),
    Template(
        id='state-order',
        name='Order States',
        description='State diagram for order processing',
        code="""stateDiagram-v2
    [*] --> Pending
    Pending --> Processing: Confirm
    Processing --> Shipped: Dispatch
    Shipped --> Delivered: Deliver
    Delivered --> [*]

    Processing --> Cancelled: Cancel
    Pending --> Cancelled: Cancel
    Cancelled --> [*]""",
    ),
    Template(
        id='er-ecommerce',
        name='E-commerce ER',
        description='Entity-Relationship for online store',
        code="""erDiagram
    CUSTOMER ||--o{ ORDER : places
    ORDER ||--|{ LINE-ITEM : contains
    PRODUCT ||--o{ LINE-ITEM : "ordered in"
    CUSTOMER {
        int id PK
        string name
        string email
    }
    ORDER {
        int id PK
        date created
        string status
    }
    PRODUCT {
        int id PK
        string name
        float price
    }""",
    ),
    Template(
        id='gantt-project',
        name='Project Schedule',
        description='Gantt diagram for project management',
        code="""gantt
    title Project Schedule
    dateFormat YYYY-MM-DD

    section Planning
    Analysis           :a1, 2024-01-01, 7d
    Design             :a2, after a1, 5d

    section Development
    Backend            :b1, after a2, 14d
    Frontend           :b2, after a2, 14d

    section Testing
    Tests              :c1, after b1, 7d
    Deploy             :c2, after c1, 3d""",
    ),
    Template(
        id='pie-budget',
        name='Pie Chart',
        description='Budget distribution',
        code="""pie showData
    title Budget Distribution
    "Development" : 45
    "Design" : 20
    "Marketing" : 15
    "Operations" : 12
    "Others" : 8""",
    ),
    Template(
        id='mindmap-ideas',
        name='Mind Map',
        description='Idea organization',
        code="""mindmap
  root((Project))
    Phase 1
      Research
      Analysis
    Phase 2
      Design
      Prototype
    Phase 3
      Development
      Testing""",
    ),
]

_BY_ID: Dict[str, Template] = {t.id: t for t in TEMPLATES}


def get_template(template_id: str) -> Template:
    """Return the template with this id; unknown ids raise KeyError."""
    try:
        return _BY_ID[template_id]
    except KeyError:
        raise KeyError(f"Unknown template: {template_id}") from None
