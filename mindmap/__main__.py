from mindmap.cli import main

raise SystemExit(main())
