from schemachat.cli import main

raise SystemExit(main())
